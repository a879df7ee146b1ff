"""
Change journal for remote sync.

Every file the synchronizer writes or deletes is appended to a journal file
inside the wipman root, one record per line:

    task::add::aaaaaaaaaa::aa/aaaaaaaa
    view::upd::1111111111::views/hiru.md
    task::del::aaaaaaaaaa::aa/aaaaaaaa

Before syncing, the journal is squashed to the last record per file and
turned into a batch of items to set and ids to delete. The remote client
itself is pluggable; none ships with wipman.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field

from wipman.core.errors import JournalError
from wipman.core.events import assert_never
from wipman.core.files.events import FileAdded, FileChange, FileDeleted, FileKind, FileUpdated
from wipman.core.files.synchronizer import FileSynchronizer
from wipman.core.files.task_files import read_task_file
from wipman.core.files.view_files import read_view_file
from wipman.core.tasks.models import Task, TaskId
from wipman.core.views.models import View, ViewId

logger = logging.getLogger(__name__)

JOURNAL_FILENAME = ".changes_to_sync"
SEPARATOR = "::"


class Operation(str, Enum):
    ADD = "add"
    UPDATE = "upd"
    DELETE = "del"


class ChangeRecord(BaseModel):
    """One journal line."""

    kind: FileKind
    operation: Operation
    item_id: str
    path: Path = Field(..., description="File path relative to the wipman root")

    model_config = ConfigDict(frozen=True)

    def serialize(self) -> str:
        return SEPARATOR.join([self.kind.value, self.operation.value, self.item_id, self.path.as_posix()])

    @classmethod
    def deserialize(cls, raw: str) -> "ChangeRecord":
        parts = raw.split(SEPARATOR)
        if len(parts) != 4:
            raise JournalError(f"Invalid journal record, expected kind::op::id::path: {raw!r}")

        kind, operation, item_id, path = parts
        try:
            return cls(kind=FileKind(kind), operation=Operation(operation), item_id=item_id, path=Path(path))
        except ValueError as e:
            raise JournalError(f"Invalid journal record {raw!r}: {e}") from e


class SyncBatch(BaseModel):
    """Everything a remote needs to catch up with the local files."""

    set_tasks: list[Task] = Field(default_factory=list)
    set_views: list[View] = Field(default_factory=list)
    delete_tasks: list[TaskId] = Field(default_factory=list)
    delete_views: list[ViewId] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.set_tasks or self.set_views or self.delete_tasks or self.delete_views)


class RemoteClient(Protocol):
    """Anything that can apply a SyncBatch to a remote store."""

    def batch_process(self, batch: SyncBatch) -> None: ...


# (previous, current) operations that cannot happen to the same file
_INVALID_SEQUENCES = {
    (Operation.DELETE, Operation.UPDATE): "file previously deleted, cannot be updated",
    (Operation.ADD, Operation.ADD): "file previously added, cannot be added again",
    (Operation.UPDATE, Operation.ADD): "file previously updated, cannot be added again",
}


def squash(records: list[ChangeRecord]) -> list[ChangeRecord]:
    """
    Keep only the last record per file, in journal order.

    Raises:
        JournalError: If a file went through an impossible sequence of operations
    """
    latest: dict[Path, tuple[int, ChangeRecord]] = {}
    sequence: list[ChangeRecord | None] = []

    for index, record in enumerate(records):
        if record.path in latest:
            previous_index, previous = latest[record.path]
            reason = _INVALID_SEQUENCES.get((previous.operation, record.operation))
            if reason is not None:
                raise JournalError(f"INVALID OPERATION SEQUENCE: {reason}, path: {record.path}", path=record.path)
            sequence[previous_index] = None

        latest[record.path] = (index, record)
        sequence.append(record)

    return [record for record in sequence if record is not None]


class ChangeJournal:
    """
    Append-only record of file changes awaiting remote sync.

    Example:
        >>> journal = ChangeJournal(root, synchronizer)
        >>> workspace.create_task("Buy milk")
        >>> journal.build_batch().set_tasks[0].title
        'Buy milk'
        >>> journal.flush(client)
    """

    def __init__(self, root: Path, synchronizer: FileSynchronizer | None = None) -> None:
        self.root = root
        self.path = root / JOURNAL_FILENAME
        self._unsubscribe = synchronizer.changes.subscribe(self._handle_file_change) if synchronizer else None

    def __len__(self) -> int:
        return len(self.records())

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def append(self, record: ChangeRecord) -> None:
        with self.path.open("a", encoding="utf-8") as f:
            f.write(f"{record.serialize()}\n")

    def records(self) -> list[ChangeRecord]:
        if not self.path.exists():
            return []
        raw = self.path.read_text(encoding="utf-8")
        return [ChangeRecord.deserialize(line) for line in raw.splitlines() if line.strip()]

    def squash(self) -> list[ChangeRecord]:
        return squash(self.records())

    def build_batch(self) -> SyncBatch:
        """
        Turn the squashed journal into a SyncBatch.

        Added and updated files are read from disk as they are now.
        """
        batch = SyncBatch()
        for record in self.squash():
            match record.operation:
                case Operation.ADD | Operation.UPDATE:
                    path = self.root / record.path
                    if record.kind is FileKind.TASK:
                        batch.set_tasks.append(read_task_file(path))
                    else:
                        batch.set_views.append(read_view_file(path))
                case Operation.DELETE:
                    if record.kind is FileKind.TASK:
                        batch.delete_tasks.append(record.item_id)
                    else:
                        batch.delete_views.append(record.item_id)
                case _:
                    assert_never(record.operation)
        return batch

    def flush(self, client: RemoteClient) -> SyncBatch:
        """Send the pending batch to `client`, then clear the journal."""
        batch = self.build_batch()
        if batch.is_empty:
            logger.info("Nothing to sync")
        else:
            client.batch_process(batch)
            logger.info(
                "Synced %d tasks, %d views, %d task deletions, %d view deletions",
                len(batch.set_tasks),
                len(batch.set_views),
                len(batch.delete_tasks),
                len(batch.delete_views),
            )
        self.clear()
        return batch

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)

    def _handle_file_change(self, change: FileChange) -> None:
        match change:
            case FileAdded():
                operation = Operation.ADD
            case FileUpdated():
                operation = Operation.UPDATE
            case FileDeleted():
                operation = Operation.DELETE
            case _:
                assert_never(change)

        self.append(
            ChangeRecord(
                kind=change.kind,
                operation=operation,
                item_id=change.item_id,
                path=self._relative(change.path),
            )
        )

    def _relative(self, path: Path) -> Path:
        try:
            return path.resolve().relative_to(self.root.resolve())
        except ValueError:
            return path
