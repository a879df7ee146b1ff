"""
View model, diff algorithm, change records and in-memory store.
"""

from wipman.core.views.diff import ViewDiff, diff_views, should_include, view_has_task
from wipman.core.views.events import (
    TaskAddedToView,
    TaskRemovedFromView,
    TaskUpdatedInlineInView,
    ViewAdded,
    ViewChange,
    ViewDeleted,
    ViewTagsUpdated,
)
from wipman.core.views.models import View, ViewId, ViewLine
from wipman.core.views.store import ViewStore

__all__ = [
    # Models
    "View",
    "ViewId",
    "ViewLine",
    # Diff
    "ViewDiff",
    "diff_views",
    "should_include",
    "view_has_task",
    # Change records
    "TaskAddedToView",
    "TaskRemovedFromView",
    "TaskUpdatedInlineInView",
    "ViewAdded",
    "ViewChange",
    "ViewDeleted",
    "ViewTagsUpdated",
    # Store
    "ViewStore",
]
