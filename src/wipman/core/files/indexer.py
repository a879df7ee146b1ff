"""
Directory Indexer.

One-shot bootstrap of the Task Store and View Store from the files under a
wipman root, plus helpers to tell whether a directory is a wipman directory
and to create a new one.
"""

import logging
from enum import Enum
from pathlib import Path

from wipman.core.dates import now
from wipman.core.errors import ParseError
from wipman.core.files.layout import DirectoryScan, backlog_path, scan_root_directory
from wipman.core.files.task_files import read_task_file
from wipman.core.files.view_files import read_view_file, write_view_file
from wipman.core.ids import BACKLOG_ID
from wipman.core.tasks.store import TaskStore
from wipman.core.views.models import View
from wipman.core.views.store import ViewStore

logger = logging.getLogger(__name__)

BACKLOG_TITLE = "Backlog"


class DirectoryStatus(str, Enum):
    """Outcome of checking whether a path is a wipman directory."""

    DOES_NOT_EXIST = "does-not-exist"
    IS_FILE = "file"
    EMPTY_DIR = "empty-dir"
    NOT_WIPMAN = "not-wipman"
    WIPMAN = "wipman"


def check_directory(path: Path, view_extension: str = ".md") -> DirectoryStatus:
    """
    Tell whether `path` is a wipman directory.

    A wipman directory holds a backlog view file that parses.
    """
    if not path.exists():
        return DirectoryStatus.DOES_NOT_EXIST
    if path.is_file():
        return DirectoryStatus.IS_FILE
    if not any(path.iterdir()):
        return DirectoryStatus.EMPTY_DIR

    backlog = backlog_path(path, view_extension)
    if not backlog.exists():
        return DirectoryStatus.NOT_WIPMAN

    try:
        read_view_file(backlog)
    except ParseError as e:
        logger.info("Backlog at %s does not parse: %s", backlog, e)
        return DirectoryStatus.NOT_WIPMAN

    return DirectoryStatus.WIPMAN


def initialize_directory(root: Path, view_extension: str = ".md") -> Path:
    """
    Turn `root` into a wipman directory by writing an empty backlog.

    Returns:
        Path to the backlog file

    Raises:
        FileExistsError: If a backlog already exists
    """
    path = backlog_path(root, view_extension)
    if path.exists():
        raise FileExistsError(f"A backlog already exists at {path}")

    timestamp = now()
    backlog = View(
        id=BACKLOG_ID,
        title=BACKLOG_TITLE,
        created=timestamp,
        updated=timestamp,
        tags=set(),
        content=[],
    )
    write_view_file(path, backlog)
    logger.info("Initialized wipman directory at %s", root)
    return path


def index_directory(
    root: Path,
    task_store: TaskStore,
    view_store: ViewStore,
    ignored_extensions: list[str] | None = None,
) -> DirectoryScan:
    """
    Load every task and view file under `root` into the stores.

    All files are parsed first; if any of them fails, the error propagates
    and neither store is touched. No change records are published.

    Raises:
        FileNotFoundError: If `root` does not exist
        ParseError: If any file is malformed
    """
    scan = scan_root_directory(root, ignored_extensions if ignored_extensions is not None else [".json"])

    tasks = [read_task_file(path) for path in scan.tasks]
    views = [read_view_file(path) for path in scan.views]

    logger.debug("index_directory: loading %d tasks into the task store", len(tasks))
    task_store.bulk_load(tasks, publish=False)
    logger.debug("index_directory: loading %d views into the view store", len(views))
    view_store.bulk_load(views, publish=False)

    logger.info("Indexed %d tasks and %d views from %s", len(tasks), len(views), root)
    return scan
