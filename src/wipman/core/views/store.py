"""
In-memory View Store.

Owns every View plus a task-id -> view-ids membership index, and keeps both
consistent with the Task Store by reacting to its change records.

Membership rule: a view lists a task iff the view has no tags, or the
view's tags equal the task's tags exactly.
"""

import logging
from collections.abc import Iterable

from wipman.core.dates import now
from wipman.core.errors import InvariantViolation, UnknownViewError
from wipman.core.events import ChangeStream, assert_never
from wipman.core.ids import BACKLOG_ID, generate_id
from wipman.core.tasks.events import TaskAdded, TaskChange, TaskDeleted, TaskUpdated
from wipman.core.tasks.models import Tag, Task, TaskId
from wipman.core.tasks.store import TaskStore
from wipman.core.views.diff import diff_views, should_include, view_has_task
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

logger = logging.getLogger(__name__)

UNTITLED = "untitled"


def place_line(content: list[ViewLine], line: ViewLine) -> list[ViewLine]:
    """
    Add a linked line to a view's content.

    The first stub with the same title and completion status is replaced
    (the user typed it and a task was just created for it); otherwise the
    line is appended.
    """
    for position, existing in enumerate(content):
        if existing.id is None and existing.title == line.title and existing.completed == line.completed:
            return content[:position] + [line] + content[position + 1 :]
    return content + [line]


class ViewStore:
    """
    Canonical in-memory set of views.

    Like the Task Store, it hands out copies: view content only changes
    through `update` and the Task Store cascade.

    The store subscribes to `task_store.changes` on construction, so build
    it before any other Task Store subscriber that needs to see view
    content already adjusted.
    """

    def __init__(self, task_store: TaskStore) -> None:
        self.task_store = task_store
        self._views: dict[ViewId, View] = {}
        self._views_by_task: dict[TaskId, set[ViewId]] = {}
        self.changes: ChangeStream[ViewChange] = ChangeStream("ViewStore.changes")

        self._unsubscribe = task_store.changes.subscribe(self._handle_task_change)

    def __len__(self) -> int:
        return len(self._views)

    def __contains__(self, view_id: object) -> bool:
        return view_id in self._views

    def close(self) -> None:
        """Stop reacting to Task Store changes."""
        self._unsubscribe()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, view_id: ViewId) -> View | None:
        """Get a copy of a view by id, or None."""
        view = self._views.get(view_id)
        return view.model_copy(deep=True) if view is not None else None

    def all(self) -> list[View]:
        return [view.model_copy(deep=True) for view in self._views.values()]

    def is_backlog(self, view: View) -> bool:
        return view.id == BACKLOG_ID

    def views_showing(self, task_id: TaskId) -> set[ViewId]:
        """Ids of the views whose content lists `task_id`."""
        return set(self._views_by_task.get(task_id, ()))

    def matching_tasks(self, tags: Iterable[Tag]) -> list[Task]:
        """Tasks a view with `tags` must list, in Task Store order."""
        tags = set(tags)
        if not tags:
            return self.task_store.all()

        candidates = {task.id for task in self.task_store.get_by_tags(tags)}
        return [task for task in self.task_store.all() if task.id in candidates and task.tags == tags]

    def snapshot(self) -> dict[str, dict[str, list[str]]]:
        """Membership index and listed task ids per view, for debugging only."""
        return {
            "views_by_task": {
                task_id: sorted(view_ids) for task_id, view_ids in sorted(self._views_by_task.items())
            },
            "tasks_by_view": {view.id: view.task_ids() for view in self._views.values()},
        }

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add(self, title: str) -> View:
        """
        Create a new view with no tags.

        A view without tags lists every task, so its content is built from
        the Task Store right away. The title "untitled" gets the id appended
        so untitled views stay distinguishable.
        """
        view_id = generate_id(existing=self._views)
        if view_id in self._views:
            raise InvariantViolation(f"View id {view_id} is already in use")

        if title == UNTITLED:
            title = f"{UNTITLED}-{view_id}"

        timestamp = now()
        tasks = self.task_store.all()
        view = View(
            id=view_id,
            title=title,
            created=timestamp,
            updated=timestamp,
            tags=set(),
            content=[ViewLine.for_task(task) for task in tasks],
        )

        self._views[view.id] = view
        for task in tasks:
            self._index(task.id, view.id)

        logger.info("ViewStore.add: created view %s (%r) listing %d tasks", view.id, title, len(tasks))
        self.changes.publish(ViewAdded(id=view.id))
        return view.model_copy(deep=True)

    def update(self, view: View) -> None:
        """
        Reconcile an incoming version of a stored view.

        Changed tags recompute the view's membership. Every content change is
        turned into a Task Store call, and the resulting task changes flow
        back into this store (and every other view) through the change
        cascade:

        - stub lines become new tasks tagged with the view's tags
        - changed lines update the task's title and completion status
        - removed lines delete the task globally, from every view

        Raises:
            UnknownViewError: If the view is not stored
            InvariantViolation: If the Backlog tags would change, or a task
                id repeats inside the view
        """
        previous = self._views.get(view.id)
        if previous is None:
            raise UnknownViewError(view.id)

        diff = diff_views(previous, view)
        if not diff.has_changes:
            logger.info("ViewStore.update: nothing has changed in view %s", view.id)
            return

        logger.debug("ViewStore.update: %s diff=%r", view.id, diff)

        if diff.tags is not None:
            self._retag(previous, diff.tags)

        for line in diff.create_without_id:
            logger.debug("ViewStore.update: creating task %r from view %s", line.title, view.id)
            self.task_store.add(line.title, tags=view.tags, completed=line.completed)

        for line in diff.create_with_id:
            # A line linked to an id this view never listed: follow the link
            # if it points to a real task, otherwise leave it alone
            self._update_task_from_line(view.id, line, unexpected=True)

        for line in diff.update:
            self._update_task_from_line(view.id, line)

        for task_id in diff.delete:
            logger.debug("ViewStore.update: line for %s removed from view %s, deleting task", task_id, view.id)
            self.task_store.remove(task_id)

    def remove(self, view_id: ViewId) -> None:
        """
        Delete a view. Unknown ids are ignored.

        Raises:
            InvariantViolation: If asked to delete the Backlog
        """
        view = self._views.get(view_id)
        if view is None:
            return
        if self.is_backlog(view):
            raise InvariantViolation("the Backlog view cannot be deleted")

        for task_id in self._indexed_tasks(view.id):
            self._unindex(task_id, view.id)
        del self._views[view.id]

        self.changes.publish(ViewDeleted(id=view.id))

    def bulk_load(self, views: Iterable[View], publish: bool = False) -> None:
        """
        Load existing views and rebuild their membership index.

        Membership is computed from each view's tags against the Task Store,
        so load tasks first.
        """
        for view in views:
            previous = self._views.get(view.id)
            if previous is not None:
                for task_id in self._indexed_tasks(previous.id):
                    self._unindex(task_id, previous.id)

            self._views[view.id] = view.model_copy(deep=True)
            for task in self.matching_tasks(view.tags):
                self._index(task.id, view.id)

            if publish:
                self.changes.publish(ViewAdded(id=view.id))

    # ------------------------------------------------------------------
    # Task Store reactions
    # ------------------------------------------------------------------

    def _handle_task_change(self, change: TaskChange) -> None:
        match change:
            case TaskAdded():
                self._handle_task_added(change)
            case TaskUpdated():
                self._handle_task_updated(change)
            case TaskDeleted():
                self._handle_task_deleted(change)
            case _:
                assert_never(change)

    def _handle_task_added(self, change: TaskAdded) -> None:
        task = self._require_task(change.id)

        for view in self._stored():
            if not should_include(view, task.tags):
                continue
            if view_has_task(view, task.id):
                logger.debug("ViewStore: view %s already lists task %s", view.id, task.id)
                self._index(task.id, view.id)
                continue
            self._add_line(view, task)

    def _handle_task_updated(self, change: TaskUpdated) -> None:
        task = self._require_task(change.id)
        showing = self.views_showing(task.id)

        # Phase A: views that already list the task
        for view in self._stored():
            if view.id not in showing:
                continue

            if not view_has_task(view, task.id):
                raise InvariantViolation(
                    f"view {view.id} is indexed as showing task {task.id}, but the task is not in its content"
                )

            if change.tags_changed and not should_include(view, task.tags):
                self._remove_line(view, task.id)
                continue

            if change.title_changed or change.completed_changed:
                self._patch_line(view, task)

        # Phase B: views that did not list the task and now match it
        for view in self._stored():
            if view.id in showing:
                continue
            if should_include(view, task.tags):
                self._add_line(view, task)

    def _handle_task_deleted(self, change: TaskDeleted) -> None:
        for view in self._stored():
            if view.id in self._views_by_task.get(change.id, ()):
                self._remove_line(view, change.id)
        self._views_by_task.pop(change.id, None)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _retag(self, previous: View, tags: set[Tag]) -> None:
        if self.is_backlog(previous):
            raise InvariantViolation("the Backlog tags must always be empty")

        matching = self.matching_tasks(tags)
        matching_ids = {task.id for task in matching}

        for task_id in self._indexed_tasks(previous.id):
            if task_id not in matching_ids:
                self._unindex(task_id, previous.id)
        for task_id in matching_ids:
            self._index(task_id, previous.id)

        kept = [line for line in previous.content if line.id is None or line.id in matching_ids]
        kept_ids = {line.id for line in kept}
        appended = [ViewLine.for_task(task) for task in matching if task.id not in kept_ids]

        logger.debug(
            "ViewStore.update: view %s tags %s -> %s, %d lines kept, %d appended",
            previous.id,
            sorted(previous.tags),
            sorted(tags),
            len(kept),
            len(appended),
        )
        self._views[previous.id] = previous.model_copy(update={"tags": set(tags), "content": kept + appended})
        self.changes.publish(ViewTagsUpdated(view_id=previous.id))

    def _stored(self) -> list[View]:
        return list(self._views.values())

    def _indexed_tasks(self, view_id: ViewId) -> set[TaskId]:
        return {task_id for task_id, view_ids in self._views_by_task.items() if view_id in view_ids}

    def _update_task_from_line(self, view_id: ViewId, line: ViewLine, unexpected: bool = False) -> None:
        if line.id is None:
            raise InvariantViolation(f"view {view_id} asked to update a task from a stub line {line.title!r}")
        task = self.task_store.get(line.id)
        if task is None:
            logger.warning(
                "View %s links to task %s, which does not exist; line %r ignored",
                view_id,
                line.id,
                line.title,
            )
            return
        if unexpected:
            logger.warning("View %s links to task %s it did not list before", view_id, line.id)

        self.task_store.update(task.model_copy(update={"title": line.title, "completed": line.completed}))

    def _add_line(self, view: View, task: Task) -> None:
        content = place_line(view.content, ViewLine.for_task(task))
        self._views[view.id] = view.model_copy(update={"content": content})
        self._index(task.id, view.id)
        self.changes.publish(TaskAddedToView(view_id=view.id, task_id=task.id))

    def _remove_line(self, view: View, task_id: TaskId) -> None:
        content = [line for line in view.content if line.id != task_id]
        self._views[view.id] = view.model_copy(update={"content": content})
        self._unindex(task_id, view.id)
        self.changes.publish(TaskRemovedFromView(view_id=view.id, task_id=task_id))

    def _patch_line(self, view: View, task: Task) -> None:
        content = [ViewLine.for_task(task) if line.id == task.id else line for line in view.content]
        self._views[view.id] = view.model_copy(update={"content": content})
        self.changes.publish(
            TaskUpdatedInlineInView(
                view_id=view.id,
                task_id=task.id,
                title=task.title,
                completed=task.completed,
            )
        )

    def _require_task(self, task_id: TaskId) -> Task:
        task = self.task_store.get(task_id)
        if task is None:
            raise InvariantViolation(f"expected to find task {task_id} in the task store, but none found")
        return task

    def _index(self, task_id: TaskId, view_id: ViewId) -> None:
        self._views_by_task.setdefault(task_id, set()).add(view_id)

    def _unindex(self, task_id: TaskId, view_id: ViewId) -> None:
        view_ids = self._views_by_task.get(task_id)
        if view_ids is None:
            return
        view_ids.discard(view_id)
        if not view_ids:
            del self._views_by_task[task_id]
