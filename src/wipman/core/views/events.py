"""
Change records published by the View Store.
"""

from pydantic import BaseModel, ConfigDict

from wipman.core.tasks.models import TaskId
from wipman.core.views.models import ViewId


class ViewAdded(BaseModel):
    """A view was created."""

    id: ViewId

    model_config = ConfigDict(frozen=True)


class ViewDeleted(BaseModel):
    """A view was removed."""

    id: ViewId

    model_config = ConfigDict(frozen=True)


class ViewTagsUpdated(BaseModel):
    """A view's tags changed and its whole content was recomputed."""

    view_id: ViewId

    model_config = ConfigDict(frozen=True)


class TaskAddedToView(BaseModel):
    """A line for the task was added to the view."""

    view_id: ViewId
    task_id: TaskId

    model_config = ConfigDict(frozen=True)


class TaskRemovedFromView(BaseModel):
    """The task's line was removed from the view."""

    view_id: ViewId
    task_id: TaskId

    model_config = ConfigDict(frozen=True)


class TaskUpdatedInlineInView(BaseModel):
    """The task's line in the view now shows a new title or completion status."""

    view_id: ViewId
    task_id: TaskId
    title: str
    completed: bool

    model_config = ConfigDict(frozen=True)


ViewChange = (
    ViewAdded
    | ViewDeleted
    | ViewTagsUpdated
    | TaskAddedToView
    | TaskRemovedFromView
    | TaskUpdatedInlineInView
)
