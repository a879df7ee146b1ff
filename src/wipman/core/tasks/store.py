"""
In-memory Task Store.

Owns every Task plus a tag -> task-ids secondary index, and publishes a
change record for every mutation on its own ChangeStream. Mutations compute
their diff first, apply it, and only then publish, so subscribers reacting
synchronously always see a consistent store.
"""

import logging
from collections.abc import Iterable

from wipman.core.dates import now
from wipman.core.errors import InvariantViolation
from wipman.core.events import ChangeStream
from wipman.core.ids import generate_id
from wipman.core.tasks.events import TaskAdded, TaskChange, TaskDeleted, TaskUpdated
from wipman.core.tasks.models import Tag, Task, TaskId, diff_tasks

logger = logging.getLogger(__name__)


class TaskStore:
    """
    Canonical in-memory set of tasks.

    Tasks go in and come out as copies; the only way to change a stored
    task is `update`, which diffs and publishes.

    Example:
        >>> store = TaskStore()
        >>> store.changes.subscribe(print)
        >>> task = store.add("Write tests", tags={"hiru"})
        id='...'
        >>> store.get_by_tag("hiru") == {task}
        True
    """

    def __init__(self, tasks: Iterable[Task] | None = None) -> None:
        self._tasks: dict[TaskId, Task] = {}
        self._tasks_by_tag: dict[Tag, set[TaskId]] = {}
        self.changes: ChangeStream[TaskChange] = ChangeStream("TaskStore.changes")

        for task in tasks or []:
            self._tasks[task.id] = task.model_copy(deep=True)
            self._add_to_tag_index(task.id, task.tags)

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._tasks

    def add(
        self,
        title: str,
        tags: Iterable[Tag] | None = None,
        completed: bool = False,
    ) -> Task:
        """
        Create a new task with a fresh id.

        Args:
            title: Task title
            tags: Initial tags (defaults to none)
            completed: Initial completion status

        Returns:
            A copy of the stored task

        Raises:
            ValidationError: If the title or a tag cannot be written to a file
        """
        logger.debug("TaskStore.add: title=%r", title)
        task_id = generate_id(existing=self._tasks)
        if task_id in self._tasks:
            raise InvariantViolation(f"Task id {task_id} is already in use")

        timestamp = now()
        task = Task(
            id=task_id,
            title=title,
            content="",
            created=timestamp,
            updated=timestamp,
            tags=set(tags or ()),
            completed=completed,
        )

        self._tasks[task.id] = task
        self._add_to_tag_index(task.id, task.tags)

        self.changes.publish(TaskAdded(id=task.id))
        return task.model_copy(deep=True)

    def update(self, task: Task) -> None:
        """
        Replace a stored task and publish the fields that changed.

        Does nothing (and publishes nothing) when no tracked field differs.

        Raises:
            InvariantViolation: If the task is not stored, or its `created`
                timestamp differs from the stored one
        """
        previous = self._tasks.get(task.id)
        if previous is None:
            raise InvariantViolation(f"attempted to update a Task {task.id} that is not in the store")

        diff = diff_tasks(previous, task)
        logger.debug("TaskStore.update: %s diff=%r", task.id, diff)
        if not diff.has_changes:
            logger.info("TaskStore.update: nothing has changed in %s, no changes will be emitted", task.id)
            return

        stored = task.model_copy(deep=True)
        if diff.tags is not None:
            logger.debug(
                "TaskStore.update: tags changed from %s to %s",
                sorted(previous.tags),
                sorted(diff.tags),
            )
            self._remove_from_tag_index(previous.id, previous.tags)
            self._add_to_tag_index(stored.id, stored.tags)

        self._tasks[stored.id] = stored

        self.changes.publish(
            TaskUpdated(
                id=stored.id,
                title=diff.title,
                tags=frozenset(diff.tags) if diff.tags is not None else None,
                blocked_by=frozenset(diff.blocked_by) if diff.blocked_by is not None else None,
                blocks=frozenset(diff.blocks) if diff.blocks is not None else None,
                completed=diff.completed,
                content=diff.content,
            )
        )

    def remove(self, task_id: TaskId) -> None:
        """Remove a task. Unknown ids are ignored."""
        task = self._tasks.get(task_id)
        if task is None:
            return

        self._remove_from_tag_index(task.id, task.tags)
        del self._tasks[task.id]

        self.changes.publish(TaskDeleted(id=task.id))

    def get(self, task_id: TaskId) -> Task | None:
        """Get a copy of a task by id, or None."""
        task = self._tasks.get(task_id)
        return task.model_copy(deep=True) if task is not None else None

    def all(self) -> list[Task]:
        """Copies of all tasks, in insertion order."""
        return [task.model_copy(deep=True) for task in self._tasks.values()]

    def ids(self) -> set[TaskId]:
        return set(self._tasks)

    def get_by_tag(self, tag: Tag) -> set[Task]:
        """Tasks carrying `tag` (empty set for unknown tags)."""
        return {self._tasks[task_id].model_copy(deep=True) for task_id in self._tasks_by_tag.get(tag, ())}

    def get_by_tags(self, tags: Iterable[Tag]) -> set[Task]:
        """
        Return every task that carries all of `tags`.

        An empty `tags` collection returns every task. Callers wanting "no
        tasks" for an empty tag set must check its size themselves.
        """
        tags = set(tags)
        if not tags:
            return set(self.all())

        task_ids: set[TaskId] | None = None
        for tag in tags:
            tagged = self._tasks_by_tag.get(tag, set())
            task_ids = set(tagged) if task_ids is None else task_ids & tagged
            if not task_ids:
                return set()

        return {self._tasks[task_id].model_copy(deep=True) for task_id in task_ids or ()}

    def bulk_load(self, tasks: Iterable[Task], publish: bool = False) -> None:
        """
        Load existing tasks, overwriting any stored task with the same id.

        Args:
            tasks: Tasks that already carry an id
            publish: Publish TaskAdded for each task (False while bootstrapping)
        """
        for task in tasks:
            previous = self._tasks.get(task.id)
            if previous is not None:
                self._remove_from_tag_index(previous.id, previous.tags)

            self._tasks[task.id] = task.model_copy(deep=True)
            self._add_to_tag_index(task.id, task.tags)
            if publish:
                self.changes.publish(TaskAdded(id=task.id))

    def snapshot(self) -> dict[Tag, set[TaskId]]:
        """Copy of the tag index, for debugging only."""
        return {tag: set(task_ids) for tag, task_ids in self._tasks_by_tag.items()}

    def _add_to_tag_index(self, task_id: TaskId, tags: Iterable[Tag]) -> None:
        for tag in tags:
            self._tasks_by_tag.setdefault(tag, set()).add(task_id)

    def _remove_from_tag_index(self, task_id: TaskId, tags: Iterable[Tag]) -> None:
        for tag in tags:
            tagged = self._tasks_by_tag.get(tag)
            if tagged is None:
                continue

            tagged.discard(task_id)
            if not tagged:
                # Clean up empty set
                del self._tasks_by_tag[tag]
