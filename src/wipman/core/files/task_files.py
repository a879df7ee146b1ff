"""
Task file format.

    id=aaaaaaaaaa
    title=Task foo
    created=2022-10-01T18:00:00.000Z
    updated=2022-10-04T16:41:23.858Z
    tags=hiru
    blockedBy=
    blocks=
    completed=false
    ---
    This is the content of the foo task

The id is not trusted from the metadata: a task lives at
`<root>/<id[:2]>/<id[2:]>`, so the path is the source of truth.
"""

import logging
from pathlib import Path

from pydantic import ValidationError

from wipman.core.dates import serialize_date
from wipman.core.errors import ParseError
from wipman.core.files.common import (
    METADATA_DELIMITER,
    describe_validation_error,
    deserialize_bool,
    deserialize_set,
    parse_date,
    parse_metadata,
    require_keys,
    serialize_bool,
    serialize_set,
    split_metadata_and_content,
)
from wipman.core.tasks.models import Task, TaskId

logger = logging.getLogger(__name__)

MANDATORY_TASK_METADATA = ("title", "created", "updated", "tags", "blockedBy", "blocks")


def task_id_from_path(path: Path) -> TaskId:
    """Task id encoded by a task file location (directory + filename)."""
    return f"{path.parent.name}{path.name}"


def task_relative_path(task_id: TaskId) -> Path:
    """Location of a task file relative to the wipman root."""
    return Path(task_id[:2]) / task_id[2:]


def serialize_task(task: Task) -> str:
    metadata = [
        f"id={task.id}",
        f"title={task.title}",
        f"created={serialize_date(task.created)}",
        f"updated={serialize_date(task.updated)}",
        f"tags={serialize_set(task.tags)}",
        f"blockedBy={serialize_set(task.blocked_by)}",
        f"blocks={serialize_set(task.blocks)}",
        f"completed={serialize_bool(task.completed)}",
    ]
    return "\n".join([*metadata, METADATA_DELIMITER, task.content])


def deserialize_task(path: Path, raw: str) -> Task:
    """
    Parse the text of a task file.

    Raises:
        ParseError: If the file is malformed, or its metadata id disagrees
            with its path
    """
    raw_metadata, raw_content = split_metadata_and_content(raw, path)
    metadata = parse_metadata(raw_metadata, path)
    require_keys(metadata, MANDATORY_TASK_METADATA, "task", path)

    task_id = task_id_from_path(path)
    if "id" in metadata and metadata["id"] != task_id:
        raise ParseError(
            path,
            f"task id in metadata ({metadata['id']}) does not match its path ({task_id})",
        )

    created = parse_date(metadata["created"], "created", path)
    updated = parse_date(metadata["updated"], "updated", path)
    completed = deserialize_bool(metadata.get("completed", "false"), path)
    try:
        return Task(
            id=task_id,
            title=metadata["title"],
            content=raw_content,
            created=created,
            updated=updated,
            tags=deserialize_set(metadata["tags"]),
            blocked_by=deserialize_set(metadata["blockedBy"]),
            blocks=deserialize_set(metadata["blocks"]),
            completed=completed,
        )
    except ValidationError as e:
        raise ParseError(path, f"invalid task metadata: {describe_validation_error(e)}") from e


def read_task_file(path: Path) -> Task:
    logger.debug("Reading task file %s", path)
    return deserialize_task(path, path.read_text(encoding="utf-8"))


def write_task_file(path: Path, task: Task) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(serialize_task(task), encoding="utf-8")
