"""
Change records published by the Task Store.
"""

from pydantic import BaseModel, ConfigDict

from wipman.core.tasks.models import Tag, TaskId


class TaskAdded(BaseModel):
    """A task was created."""

    id: TaskId

    model_config = ConfigDict(frozen=True)


class TaskUpdated(BaseModel):
    """
    A task changed.

    Only the fields that actually changed are set; the rest are None, so
    consumers can tell a title change from a tag change.
    """

    id: TaskId
    title: str | None = None
    tags: frozenset[Tag] | None = None
    blocked_by: frozenset[TaskId] | None = None
    blocks: frozenset[TaskId] | None = None
    completed: bool | None = None
    content: str | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def title_changed(self) -> bool:
        return self.title is not None

    @property
    def tags_changed(self) -> bool:
        return self.tags is not None

    @property
    def completed_changed(self) -> bool:
        return self.completed is not None


class TaskDeleted(BaseModel):
    """A task was removed."""

    id: TaskId

    model_config = ConfigDict(frozen=True)


TaskChange = TaskAdded | TaskUpdated | TaskDeleted
