"""
File Synchronizer.

Keeps the files under a wipman root consistent with the Task Store and the
View Store, in both directions:

- store -> files: every store change record is turned into the smallest
  file write that reflects it (a task file rewrite, a single view line
  patched, added or dropped)
- files -> stores: an externally saved or deleted file is parsed and
  reconciled through the store APIs, whose cascade then rewrites every
  other affected file

Example:
    >>> tasks = TaskStore()
    >>> views = ViewStore(tasks)
    >>> sync = FileSynchronizer(config, tasks, views)
    >>> index_directory(config.root, tasks, views)
    >>> sync.index()
    >>> sync.handle_file_changed(config.root / "views" / "backlog.md")
"""

import logging
from pathlib import Path

from wipman.core.config.models import WipmanConfig
from wipman.core.dates import from_timestamp
from wipman.core.errors import InvariantViolation, UnknownPathError, UnknownViewError
from wipman.core.events import ChangeStream, assert_never
from wipman.core.files.events import FileAdded, FileChange, FileDeleted, FileKind, FileUpdated
from wipman.core.files.layout import DirectoryScan, classify_path, new_view_path, scan_root_directory
from wipman.core.files.task_files import (
    read_task_file,
    task_id_from_path,
    task_relative_path,
    write_task_file,
)
from wipman.core.files.view_files import (
    LinePatcher,
    add_line,
    patch_view_file,
    read_view_file,
    read_view_metadata,
    remove_line,
    replace_content,
    replace_line,
    write_view_file,
)
from wipman.core.tasks.events import TaskAdded, TaskChange, TaskDeleted, TaskUpdated
from wipman.core.tasks.models import Task, TaskId
from wipman.core.tasks.store import TaskStore
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

logger = logging.getLogger(__name__)


class FileSynchronizer:
    """
    Owns the id -> path maps and all file writes.

    Subscribe order matters: build the ViewStore before the synchronizer so
    that, for every task change, view content is already adjusted when the
    synchronizer writes files.
    """

    def __init__(self, config: WipmanConfig, task_store: TaskStore, view_store: ViewStore) -> None:
        self.config = config
        self.root = config.root
        self.task_store = task_store
        self.view_store = view_store
        self.task_paths: dict[TaskId, Path] = {}
        self.view_paths: dict[ViewId, Path] = {}
        self.changes: ChangeStream[FileChange] = ChangeStream("FileSynchronizer.changes")

        self._unsubscribe = [
            task_store.changes.subscribe(self._handle_task_change),
            view_store.changes.subscribe(self._handle_view_change),
        ]

    def close(self) -> None:
        """Stop reacting to store changes."""
        for unsubscribe in self._unsubscribe:
            unsubscribe()

    # ------------------------------------------------------------------
    # Path maps
    # ------------------------------------------------------------------

    def index(self, scan: DirectoryScan | None = None) -> None:
        """
        Rebuild both path maps from a directory scan.

        Every file is parsed before the maps are replaced, so a parse error
        leaves the current maps untouched.

        Raises:
            ParseError: If any task or view file is malformed
        """
        if scan is None:
            scan = scan_root_directory(self.root, self.config.ignored_extensions)

        tasks = [(read_task_file(path), path) for path in scan.tasks]
        views = [(read_view_metadata(path), path) for path in scan.views]

        self.task_paths = {task.id: path for task, path in tasks}
        self.view_paths = {view.id: path for view, path in views}
        logger.info(
            "FileSynchronizer.index: %d task paths, %d view paths",
            len(self.task_paths),
            len(self.view_paths),
        )

    def task_path(self, task_id: TaskId) -> Path:
        path = self.task_paths.get(task_id)
        if path is None:
            raise UnknownPathError("task", task_id)
        return path

    def view_path(self, view_id: ViewId) -> Path:
        path = self.view_paths.get(view_id)
        if path is None:
            raise UnknownPathError("view", view_id)
        return path

    def view_id_at(self, path: Path) -> ViewId | None:
        """Id of the view stored at `path`, if known."""
        resolved = path.resolve()
        for view_id, view_path in self.view_paths.items():
            if view_path.resolve() == resolved:
                return view_id
        return None

    # ------------------------------------------------------------------
    # Externally observed edits
    # ------------------------------------------------------------------

    def handle_file_changed(self, path: Path) -> FileKind | None:
        """
        Reconcile a file the user saved.

        Returns:
            What kind of file was reconciled, or None if it was ignored

        Raises:
            ParseError: If the file is malformed
            UnknownViewError: If a view file holds an id the View Store
                does not know (reindex to pick it up)
        """
        kind = classify_path(self.root, path, self.config.ignored_extensions)
        match kind:
            case None:
                logger.info("Ignoring %s, not a task or view file", path)
                return None
            case FileKind.TASK:
                task_id = self._reconcile_task_file(path)
                self.changes.publish(FileUpdated(kind=kind, path=path, item_id=task_id))
            case FileKind.VIEW:
                view_id = self._reconcile_view_file(path)
                self.changes.publish(FileUpdated(kind=kind, path=path, item_id=view_id))
            case _:
                assert_never(kind)
        return kind

    def handle_file_deleted(self, path: Path) -> FileKind | None:
        """
        Reconcile a file the user deleted.

        A deleted task file deletes the task (and its line in every view); a
        deleted view file deletes the view.
        """
        kind = classify_path(self.root, path, self.config.ignored_extensions)
        match kind:
            case None:
                logger.info("Ignoring deletion of %s, not a task or view file", path)
            case FileKind.TASK:
                task_id = task_id_from_path(path)
                if task_id not in self.task_store:
                    logger.info("Deleted file %s belongs to no known task", path)
                    return kind
                self.task_store.remove(task_id)
            case FileKind.VIEW:
                view_id = self.view_id_at(path)
                if view_id is None:
                    logger.info("Deleted file %s belongs to no known view", path)
                    return kind
                self.view_store.remove(view_id)
            case _:
                assert_never(kind)
        return kind

    def _reconcile_task_file(self, path: Path) -> TaskId:
        task = read_task_file(path)

        # The file modification time wins over the `updated` metadata
        modified = from_timestamp(path.stat().st_mtime)
        if task.updated != modified:
            logger.debug(
                "Task %s: updated=%s disagrees with mtime=%s, using mtime",
                task.id,
                task.updated.isoformat(),
                modified.isoformat(),
            )
            task = task.model_copy(update={"updated": modified})

        self.task_paths[task.id] = path
        if task.id not in self.task_store:
            logger.info("Adopting task %s from %s", task.id, path)
            self.task_store.bulk_load([task], publish=True)
        else:
            self.task_store.update(task)
        return task.id

    def _reconcile_view_file(self, path: Path) -> ViewId:
        view = read_view_file(path)
        if view.id not in self.view_store:
            raise UnknownViewError(view.id)

        self.view_paths[view.id] = path
        self.view_store.update(view)
        return view.id

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
        path = self.task_paths.get(task.id, self.root / task_relative_path(task.id))

        write_task_file(path, task)
        self.task_paths[task.id] = path
        self.changes.publish(FileAdded(kind=FileKind.TASK, path=path, item_id=task.id))

    def _handle_task_updated(self, change: TaskUpdated) -> None:
        task = self._require_task(change.id)
        path = self.task_path(task.id)

        write_task_file(path, task)
        self.changes.publish(FileUpdated(kind=FileKind.TASK, path=path, item_id=task.id))

    def _handle_task_deleted(self, change: TaskDeleted) -> None:
        path = self.task_path(change.id)
        logger.debug("Deleting task file %s", path)

        path.unlink(missing_ok=True)
        if path.parent.exists() and not any(path.parent.iterdir()):
            path.parent.rmdir()

        del self.task_paths[change.id]
        self.changes.publish(FileDeleted(kind=FileKind.TASK, path=path, item_id=change.id))

    # ------------------------------------------------------------------
    # View Store reactions
    # ------------------------------------------------------------------

    def _handle_view_change(self, change: ViewChange) -> None:
        match change:
            case ViewAdded():
                self._handle_view_added(change)
            case ViewDeleted():
                self._handle_view_deleted(change)
            case ViewTagsUpdated():
                self._handle_view_tags_updated(change)
            case TaskAddedToView():
                self._handle_task_added_to_view(change)
            case TaskRemovedFromView():
                self._handle_task_removed_from_view(change)
            case TaskUpdatedInlineInView():
                self._handle_task_updated_inline_in_view(change)
            case _:
                assert_never(change)

    def _handle_view_added(self, change: ViewAdded) -> None:
        view = self._require_view(change.id)
        path = self.view_paths.get(view.id)
        if path is None:
            path = new_view_path(
                self.root,
                view.title,
                view.id,
                taken=set(self.view_paths.values()),
                view_extension=self.config.view_extension,
            )

        logger.info("Writing view %s to %s", view.id, path)
        write_view_file(path, view)
        self.view_paths[view.id] = path
        self.changes.publish(FileAdded(kind=FileKind.VIEW, path=path, item_id=view.id))

    def _handle_view_deleted(self, change: ViewDeleted) -> None:
        path = self.view_path(change.id)
        path.unlink(missing_ok=True)

        del self.view_paths[change.id]
        self.changes.publish(FileDeleted(kind=FileKind.VIEW, path=path, item_id=change.id))

    def _handle_view_tags_updated(self, change: ViewTagsUpdated) -> None:
        view = self._require_view(change.view_id)
        self._patch_view(view.id, replace_content(view.content))

    def _handle_task_added_to_view(self, change: TaskAddedToView) -> None:
        task = self._require_task(change.task_id)
        path = self.view_path(change.view_id)
        self._patch_view(change.view_id, add_line(ViewLine.for_task(task), path))

    def _handle_task_removed_from_view(self, change: TaskRemovedFromView) -> None:
        path = self.view_path(change.view_id)
        self._patch_view(change.view_id, remove_line(change.task_id, path))

    def _handle_task_updated_inline_in_view(self, change: TaskUpdatedInlineInView) -> None:
        path = self.view_path(change.view_id)
        line = ViewLine(completed=change.completed, title=change.title, id=change.task_id)
        self._patch_view(change.view_id, replace_line(change.task_id, line, path))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _patch_view(self, view_id: ViewId, patch: LinePatcher) -> None:
        path = self.view_path(view_id)
        if patch_view_file(path, patch):
            self.changes.publish(FileUpdated(kind=FileKind.VIEW, path=path, item_id=view_id))
        else:
            logger.debug("View file %s already up to date", path)

    def _require_task(self, task_id: TaskId) -> Task:
        task = self.task_store.get(task_id)
        if task is None:
            raise InvariantViolation(f"expected to find task {task_id} in the task store, but none found")
        return task

    def _require_view(self, view_id: ViewId) -> View:
        view = self.view_store.get(view_id)
        if view is None:
            raise UnknownViewError(view_id)
        return view
