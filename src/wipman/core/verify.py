"""
Consistency Auditor.

Read-only cross-check between the Task Store, the View Store and the files:
for every (task, view) pair, does the view list the task exactly when the
membership rule says it should, with the task's current title and
completion status?

Nothing here repairs anything. Re-index, or edit the files, to fix what the
report shows.
"""

import logging
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field

from wipman.core.config.models import WipmanConfig
from wipman.core.errors import ParseError
from wipman.core.files.indexer import index_directory
from wipman.core.files.layout import scan_root_directory
from wipman.core.files.synchronizer import FileSynchronizer
from wipman.core.files.task_files import read_task_file
from wipman.core.files.view_files import read_view_file
from wipman.core.tasks.store import TaskStore
from wipman.core.views.diff import should_include
from wipman.core.views.models import View, ViewLine
from wipman.core.views.store import ViewStore

logger = logging.getLogger(__name__)


class PairProblem(str, Enum):
    EXPECTED_TASK_IN_VIEW_BUT_NOT_FOUND = "expected task in view but not found"
    DID_NOT_EXPECT_TASK_IN_VIEW_BUT_FOUND = "did not expect task in view but found"
    TASK_COMPLETION_STATUS_MISMATCH = "task completion status mismatch"
    TASK_TITLE_MISMATCH = "task title mismatch"


class DisconnectedPair(BaseModel):
    """A task and a view whose files disagree with the membership rule."""

    task: Path = Field(..., description="Task file")
    view: Path = Field(..., description="View file")
    problems: list[PairProblem] = Field(default_factory=list)


class InvalidFile(BaseModel):
    path: Path
    reason: str


class HealthReport(BaseModel):
    """
    Result of auditing a wipman directory.

    One DisconnectedPair per (task, view) pair with problems, so a task
    missing from three views yields three entries.
    """

    files_with_invalid_format: list[InvalidFile] = Field(default_factory=list)
    disconnected_pairs: list[DisconnectedPair] = Field(default_factory=list)

    @property
    def problems_found(self) -> bool:
        return bool(self.files_with_invalid_format or self.disconnected_pairs)


def _line_for(view: View, task_id: str) -> ViewLine | None:
    for line in view.content:
        if line.id == task_id:
            return line
    return None


def verify(task_store: TaskStore, view_store: ViewStore, synchronizer: FileSynchronizer) -> HealthReport:
    """
    Audit every (task, view) pair of the stores.

    Raises:
        UnknownPathError: If a stored task or view has no known file
    """
    pairs: list[DisconnectedPair] = []
    for task in task_store.all():
        task_path = synchronizer.task_path(task.id)
        for view in view_store.all():
            view_path = synchronizer.view_path(view.id)
            should_appear = should_include(view, task.tags)
            listed = _line_for(view, task.id)

            problems: list[PairProblem] = []
            if listed is None:
                if should_appear:
                    problems.append(PairProblem.EXPECTED_TASK_IN_VIEW_BUT_NOT_FOUND)
            elif not should_appear:
                problems.append(PairProblem.DID_NOT_EXPECT_TASK_IN_VIEW_BUT_FOUND)
            else:
                if listed.title != task.title:
                    problems.append(PairProblem.TASK_TITLE_MISMATCH)
                if listed.completed != task.completed:
                    problems.append(PairProblem.TASK_COMPLETION_STATUS_MISMATCH)

            if problems:
                pairs.append(DisconnectedPair(task=task_path, view=view_path, problems=problems))

    logger.info("verify: %d disconnected task/view pairs", len(pairs))
    return HealthReport(disconnected_pairs=pairs)


def verify_directory(config: WipmanConfig) -> HealthReport:
    """
    Audit a wipman directory from a fresh scan.

    Builds throwaway stores so the audit sees exactly what is on disk.
    Files that do not parse are reported instead of raised; when there are
    any, the pair audit is skipped.
    """
    scan = scan_root_directory(config.root, config.ignored_extensions)

    invalid: list[InvalidFile] = []
    for path in scan.tasks:
        try:
            read_task_file(path)
        except ParseError as e:
            invalid.append(InvalidFile(path=path, reason=e.reason))
    for path in scan.views:
        try:
            read_view_file(path)
        except ParseError as e:
            invalid.append(InvalidFile(path=path, reason=e.reason))

    if invalid:
        logger.info("verify_directory: %d files do not parse", len(invalid))
        return HealthReport(files_with_invalid_format=invalid)

    task_store = TaskStore()
    view_store = ViewStore(task_store)
    synchronizer = FileSynchronizer(config, task_store, view_store)
    try:
        index_directory(config.root, task_store, view_store, config.ignored_extensions)
        synchronizer.index(scan)
        return verify(task_store, view_store, synchronizer)
    finally:
        synchronizer.close()
        view_store.close()
