"""
Pytest configuration and shared fixtures.

Provides a fixture wipman directory (four tasks, three views), configs and
opened workspaces built on top of it, and in-memory stores.
"""

from datetime import datetime, timezone
from pathlib import Path

import pytest

from wipman.core.config.models import WipmanConfig
from wipman.core.tasks.models import Task
from wipman.core.tasks.store import TaskStore
from wipman.core.views.models import View
from wipman.core.views.store import ViewStore
from wipman.core.workspace import Workspace

BACKLOG = (
    "id=0000000000\n"
    "title=Backlog\n"
    "created=2022-10-01T18:00:00.000Z\n"
    "updated=2022-10-04T16:41:23.858Z\n"
    "tags=\n"
    "---\n"
    "- [ ] Task foo  [aaaaaaaaaa](../aa/aaaaaaaa)\n"
    "- [ ] Task bar  [bbbbbbbbbb](../bb/bbbbbbbb)\n"
    "- [ ] Task barrrr  [cccccccccc](../cc/cccccccc)\n"
    "- [x] Task bazzzz  [dddddddddd](../dd/dddddddd)\n"
)

HIRU = (
    "id=1111111111\n"
    "title=HIRU\n"
    "created=2022-10-01T18:00:00.000Z\n"
    "updated=2022-10-04T16:41:23.858Z\n"
    "tags=hiru\n"
    "---\n"
    "- [ ] Task foo  [aaaaaaaaaa](../aa/aaaaaaaa)\n"
    "- [ ] Task bar  [bbbbbbbbbb](../bb/bbbbbbbb)\n"
)

UNUSED_VIEW = (
    "id=2222222222\n"
    "title=Unused view\n"
    "created=2022-10-01T18:00:00.000Z\n"
    "updated=2022-10-04T16:41:23.858Z\n"
    "tags=some_unused_tag\n"
    "---\n"
)

TASK_FOO = (
    "id=aaaaaaaaaa\n"
    "title=Task foo\n"
    "created=2022-10-01T18:00:00.000Z\n"
    "updated=2022-10-04T16:41:23.858Z\n"
    "tags=hiru\n"
    "blockedBy=\n"
    "blocks=\n"
    "completed=false\n"
    "---\n"
    "This is the content of the foo task\n"
)

TASK_BAR = (
    "id=bbbbbbbbbb\n"
    "title=Task bar\n"
    "created=2022-10-01T18:00:00.000Z\n"
    "updated=2022-10-04T16:41:23.858Z\n"
    "tags=hiru\n"
    "blockedBy=\n"
    "blocks=\n"
    "completed=false\n"
    "---\n"
    "This is the content of the bar task\n"
)

TASK_BARRRR = (
    "id=cccccccccc\n"
    "title=Task barrrr\n"
    "created=2022-10-11T18:00:00.000Z\n"
    "updated=2022-10-14T16:41:23.858Z\n"
    "tags=\n"
    "blockedBy=\n"
    "blocks=\n"
    "completed=false\n"
    "---\n"
)

TASK_BAZZZZ = (
    "id=dddddddddd\n"
    "title=Task bazzzz\n"
    "created=2022-10-01T18:00:00.000Z\n"
    "updated=2022-10-04T16:41:23.858Z\n"
    "tags=\n"
    "blockedBy=\n"
    "blocks=\n"
    "completed=true\n"
    "---\n"
)

FIXTURE_FILES = {
    "views/backlog.md": BACKLOG,
    "views/hiru.md": HIRU,
    "views/unused_view.md": UNUSED_VIEW,
    "aa/aaaaaaaa": TASK_FOO,
    "bb/bbbbbbbb": TASK_BAR,
    "cc/cccccccc": TASK_BARRRR,
    "dd/dddddddd": TASK_BAZZZZ,
}

CREATED = datetime(2022, 10, 1, 18, 0, tzinfo=timezone.utc)


def write_files(root: Path, files: dict[str, str]) -> None:
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)


def _make_task(task_id: str, title: str = "A task", tags: set[str] | None = None, **kwargs) -> Task:
    return Task(
        id=task_id,
        title=title,
        created=CREATED,
        updated=CREATED,
        tags=tags or set(),
        **kwargs,
    )


def _make_view(view_id: str, title: str = "A view", tags: set[str] | None = None, **kwargs) -> View:
    return View(
        id=view_id,
        title=title,
        created=CREATED,
        updated=CREATED,
        tags=tags or set(),
        **kwargs,
    )


# ==============================================================================
# Environment isolation
# ==============================================================================


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Keep user config and WIPMAN_* variables from leaking into tests."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.delenv("WIPMAN_ROOT", raising=False)
    monkeypatch.delenv("WIPMAN_DEBUG", raising=False)


# ==============================================================================
# Directory Fixtures
# ==============================================================================


@pytest.fixture
def wipman_dir(tmp_path) -> Path:
    """
    A wipman directory with four tasks and three views.

    Creates:
    - views/backlog.md (all four tasks, bazzzz completed)
    - views/hiru.md (tags=hiru: foo and bar)
    - views/unused_view.md (tags=some_unused_tag: empty)
    - aa/aaaaaaaa, bb/bbbbbbbb (tagged hiru), cc/cccccccc, dd/dddddddd
    """
    root = tmp_path / "wip"
    root.mkdir()
    write_files(root, FIXTURE_FILES)
    return root.resolve()


@pytest.fixture
def config(wipman_dir) -> WipmanConfig:
    return WipmanConfig(root=wipman_dir)


@pytest.fixture
def workspace(config):
    """An opened workspace on the fixture directory."""
    workspace = Workspace.open(config)
    yield workspace
    workspace.close()


# ==============================================================================
# Store Fixtures
# ==============================================================================


@pytest.fixture
def task_store() -> TaskStore:
    return TaskStore()


@pytest.fixture
def view_store(task_store) -> ViewStore:
    """A View Store holding only an empty Backlog."""
    store = ViewStore(task_store)
    store.bulk_load([_make_view("0000000000", "Backlog")])
    return store


@pytest.fixture
def recorder():
    """Factory for subscribers that collect published change records."""

    def make(stream):
        records = []
        stream.subscribe(records.append)
        return records

    return make


@pytest.fixture
def make_task():
    """Factory for tasks with fixed timestamps."""
    return _make_task


@pytest.fixture
def make_view():
    """Factory for views with fixed timestamps."""
    return _make_view
