"""
Workspace: one wipman directory, opened.

Wires one Task Store, View Store, File Synchronizer and Change Journal
together for a single root and bootstraps them from disk. This is the entry
point editor integrations and the CLI use.

Example:
    >>> workspace = Workspace.open(load_config(Path("~/wip")))
    >>> task = workspace.create_task("Write the docs", tags={"hiru"})
    >>> workspace.on_save(workspace.synchronizer.task_path(task.id))
"""

import logging
from collections.abc import Iterable
from pathlib import Path

from wipman.core.config.models import WipmanConfig
from wipman.core.errors import NotAWipmanDirectoryError
from wipman.core.files.events import FileKind
from wipman.core.files.indexer import DirectoryStatus, check_directory, index_directory
from wipman.core.files.synchronizer import FileSynchronizer
from wipman.core.remote.journal import ChangeJournal
from wipman.core.snapshot import make_snapshot
from wipman.core.tasks.models import Tag, Task
from wipman.core.tasks.store import TaskStore
from wipman.core.verify import HealthReport, verify
from wipman.core.views.models import View
from wipman.core.views.store import ViewStore

logger = logging.getLogger(__name__)


class Workspace:
    def __init__(self, config: WipmanConfig) -> None:
        self.config = config
        self.task_store = TaskStore()
        # Must subscribe to the Task Store before the synchronizer does
        self.view_store = ViewStore(self.task_store)
        self.synchronizer = FileSynchronizer(config, self.task_store, self.view_store)
        self.journal: ChangeJournal | None = (
            ChangeJournal(config.root, self.synchronizer) if config.journal_enabled else None
        )

    @classmethod
    def open(cls, config: WipmanConfig) -> "Workspace":
        """
        Open and index a wipman directory.

        Raises:
            NotAWipmanDirectoryError: If `config.root` has no readable backlog
            ParseError: If any task or view file is malformed
        """
        status = check_directory(config.root, config.view_extension)
        if status is not DirectoryStatus.WIPMAN:
            raise NotAWipmanDirectoryError(config.root, status.value)

        workspace = cls(config)
        scan = index_directory(config.root, workspace.task_store, workspace.view_store, config.ignored_extensions)
        workspace.synchronizer.index(scan)
        logger.info(
            "Opened %s: %d tasks, %d views",
            config.root,
            len(workspace.task_store),
            len(workspace.view_store),
        )
        return workspace

    def close(self) -> None:
        if self.journal is not None:
            self.journal.close()
        self.synchronizer.close()
        self.view_store.close()

    def create_task(self, title: str, tags: Iterable[Tag] | None = None) -> Task:
        return self.task_store.add(title, tags=tags)

    def create_view(self, title: str) -> View:
        return self.view_store.add(title)

    def on_save(self, path: Path) -> FileKind | None:
        """Reconcile a file the user saved in their editor."""
        kind = self.synchronizer.handle_file_changed(path)
        if kind is not None and self.config.debug:
            make_snapshot(self.config.root, self.task_store, self.view_store)
        return kind

    def on_delete(self, path: Path) -> FileKind | None:
        """Reconcile a file the user deleted."""
        return self.synchronizer.handle_file_deleted(path)

    def verify(self) -> HealthReport:
        return verify(self.task_store, self.view_store, self.synchronizer)

    def pending_changes(self) -> int:
        """Number of journal records waiting for remote sync."""
        return len(self.journal) if self.journal is not None else 0
