"""
View data model.

A View is a named, tag-filtered, ordered listing of tasks rendered as a
markdown checklist. The Backlog is the view with the reserved id and an
empty tag set, which matches every task.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from wipman.core.tasks.models import Tag, Task, TaskId, check_tags, check_title

ViewId = str


class ViewLine(BaseModel):
    """
    One checklist entry inside a view.

    `title` is a cached copy of the task title at the last sync. A line
    without `id` is a stub the user typed inline, not yet promoted to a task.
    """

    completed: bool = Field(default=False, description="Checkbox state")
    title: str = Field(..., description="Task title as rendered in the view")
    id: TaskId | None = Field(default=None, description="Linked task id, None for stubs")

    model_config = ConfigDict(frozen=True)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return check_title(v)

    @classmethod
    def for_task(cls, task: Task) -> "ViewLine":
        """Build the line that represents `task`."""
        return cls(completed=task.completed, title=task.title, id=task.id)


class View(BaseModel):
    """
    A tag-filtered listing of tasks.

    Example:
        >>> view = View(
        ...     id="1111111111",
        ...     title="HIRU",
        ...     created=created,
        ...     updated=created,
        ...     tags={"hiru"},
        ... )
        >>> view.content
        []
    """

    id: ViewId = Field(..., description="Unique view identifier")
    title: str = Field(..., description="Human-readable view name")
    created: datetime = Field(..., description="Creation timestamp")
    updated: datetime = Field(..., description="Last update timestamp")
    tags: set[Tag] = Field(default_factory=set, description="Membership predicate, empty matches all")
    content: list[ViewLine] = Field(default_factory=list, description="Ordered checklist entries")

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
        return hash(self.id)

    def task_ids(self) -> list[TaskId]:
        """Ids of the linked lines, in content order."""
        return [line.id for line in self.content if line.id is not None]
