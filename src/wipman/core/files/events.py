"""
Change records published by the File Synchronizer.

One record is published per file the synchronizer writes or deletes, and
per externally saved file it reconciles.
"""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict


class FileKind(str, Enum):
    """What a file under the wipman root holds."""

    TASK = "task"
    VIEW = "view"


class FileAdded(BaseModel):
    kind: FileKind
    path: Path
    item_id: str

    model_config = ConfigDict(frozen=True)


class FileUpdated(BaseModel):
    kind: FileKind
    path: Path
    item_id: str

    model_config = ConfigDict(frozen=True)


class FileDeleted(BaseModel):
    kind: FileKind
    path: Path
    item_id: str

    model_config = ConfigDict(frozen=True)


FileChange = FileAdded | FileUpdated | FileDeleted
