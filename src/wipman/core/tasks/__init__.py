"""
Task model, change records and in-memory store.
"""

from wipman.core.tasks.events import TaskAdded, TaskChange, TaskDeleted, TaskUpdated
from wipman.core.tasks.models import Tag, Task, TaskDiff, TaskId, diff_tasks
from wipman.core.tasks.store import TaskStore

__all__ = [
    # Models
    "Tag",
    "Task",
    "TaskDiff",
    "TaskId",
    "diff_tasks",
    # Change records
    "TaskAdded",
    "TaskChange",
    "TaskDeleted",
    "TaskUpdated",
    # Store
    "TaskStore",
]
