"""
Task data model.

A Task is an atomic work item stored as one file. Its id is generated once
and never changes; its `created` timestamp is immutable after creation.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from wipman.core.errors import InvariantViolation

TaskId = str
Tag = str

_LINE_BREAKS = ("\n", "\r")


def check_title(title: str) -> str:
    """Titles are stored on a single metadata or checklist line."""
    if any(char in title for char in _LINE_BREAKS):
        raise ValueError(f"title must fit on one line: {title!r}")
    return title


def check_tags(tags: set[Tag]) -> set[Tag]:
    """Tags are stored comma-joined on a single metadata line."""
    for tag in tags:
        if tag.strip() == "":
            raise ValueError("tags cannot be empty or blank")
        if "," in tag or any(char in tag for char in _LINE_BREAKS):
            raise ValueError(f"tags cannot contain commas or line breaks: {tag!r}")
    return tags


class Task(BaseModel):
    """
    A single task.

    Example:
        >>> task = Task(
        ...     id="aaaaaaaaaa",
        ...     title="Write tests",
        ...     created=datetime(2022, 10, 1, 18, tzinfo=timezone.utc),
        ...     updated=datetime(2022, 10, 1, 18, tzinfo=timezone.utc),
        ...     tags={"hiru"},
        ... )
        >>> task.completed
        False
    """

    id: TaskId = Field(..., description="Unique task identifier, also its file location")
    title: str = Field(..., description="Short task title")
    content: str = Field(default="", description="Free-text body, kept verbatim")
    created: datetime = Field(..., description="Creation timestamp, never changes")
    updated: datetime = Field(..., description="Last update timestamp")
    tags: set[Tag] = Field(default_factory=set, description="Tags used to match views")
    blocked_by: set[TaskId] = Field(
        default_factory=set,
        description="Tasks that must be done before this one",
    )
    blocks: set[TaskId] = Field(
        default_factory=set,
        description="Tasks that are blocked until this one is done",
    )
    completed: bool = Field(default=False, description="Completion status")

    model_config = ConfigDict(validate_assignment=True)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return check_title(v)

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: set[Tag]) -> set[Tag]:
        return check_tags(v)

    def __hash__(self) -> int:
        # Identity is the id, so tasks can live in sets
        return hash(self.id)


class TaskDiff(BaseModel):
    """
    Fields that differ between two versions of the same task.

    A field is None when it did not change; otherwise it carries the new value.
    """

    title: str | None = None
    tags: set[Tag] | None = None
    blocked_by: set[TaskId] | None = None
    blocks: set[TaskId] | None = None
    completed: bool | None = None
    content: str | None = None

    @property
    def has_changes(self) -> bool:
        """True if at least one field changed."""
        return any(value is not None for value in self.model_dump().values())


def diff_tasks(before: Task, after: Task) -> TaskDiff:
    """
    Return the task properties that got updated.

    Args:
        before: Stored version
        after: Incoming version

    Returns:
        TaskDiff with the new value of every changed field

    Raises:
        InvariantViolation: If the ids differ or `created` changed
    """
    if before.id != after.id:
        raise InvariantViolation(
            f"tasks with different IDs cannot be compared: {before.id} & {after.id}"
        )

    if before.created != after.created:
        raise InvariantViolation(
            f"Task {before.id} creation must never change, but changed from"
            f" {before.created.isoformat()} to {after.created.isoformat()}"
        )

    return TaskDiff(
        title=after.title if before.title != after.title else None,
        tags=set(after.tags) if before.tags != after.tags else None,
        blocked_by=set(after.blocked_by) if before.blocked_by != after.blocked_by else None,
        blocks=set(after.blocks) if before.blocks != after.blocks else None,
        completed=after.completed if before.completed != after.completed else None,
        content=after.content if before.content != after.content else None,
    )
