"""
Tests for opening a workspace and the debug snapshots written on save.
"""

import pytest
import yaml
from pydantic import ValidationError

from wipman.core.config.models import WipmanConfig
from wipman.core.errors import NotAWipmanDirectoryError, ParseError
from wipman.core.snapshot import SNAPSHOTS_DIR, build_snapshot, make_snapshot
from wipman.core.workspace import Workspace


class TestOpen:
    def test_opens_fixture_directory(self, workspace):
        assert len(workspace.task_store) == 4
        assert len(workspace.view_store) == 3
        assert workspace.journal is not None

    def test_not_a_wipman_directory(self, tmp_path):
        with pytest.raises(NotAWipmanDirectoryError) as exc_info:
            Workspace.open(WipmanConfig(root=tmp_path / "missing"))
        assert exc_info.value.status == "does-not-exist"

    def test_malformed_file(self, config, wipman_dir):
        (wipman_dir / "dd" / "dddddddd").write_text("completed=true\n---\n")
        with pytest.raises(ParseError, match="must contain 'title'"):
            Workspace.open(config)

    def test_close_detaches_every_subscriber(self, workspace):
        workspace.close()

        assert len(workspace.task_store.changes) == 0
        assert len(workspace.view_store.changes) == 0
        assert len(workspace.synchronizer.changes) == 0

    def test_rejected_task_leaves_directory_readable(self, config, wipman_dir, workspace):
        files_before = sorted(wipman_dir.rglob("*"))
        backlog_before = (wipman_dir / "views" / "backlog.md").read_text()

        with pytest.raises(ValidationError):
            workspace.create_task("line one\nline two")
        workspace.close()

        assert sorted(wipman_dir.rglob("*")) == files_before
        assert (wipman_dir / "views" / "backlog.md").read_text() == backlog_before
        reopened = Workspace.open(config)
        assert len(reopened.task_store) == 4
        reopened.close()


class TestSnapshots:
    def test_build_snapshot(self, workspace):
        snapshot = build_snapshot(workspace.task_store, workspace.view_store)

        assert snapshot["TaskStore"] == [{"tag": "hiru", "task_ids": ["aaaaaaaaaa", "bbbbbbbbbb"]}]
        assert {"task_id": "aaaaaaaaaa", "view_ids": ["0000000000", "1111111111"]} in snapshot["ViewStore"][
            "views_by_task"
        ]
        assert {"view_id": "2222222222", "task_ids": []} in snapshot["ViewStore"]["tasks_by_view"]

    def test_make_snapshot_writes_yaml(self, workspace, wipman_dir):
        path = make_snapshot(wipman_dir, workspace.task_store, workspace.view_store)

        assert path.parent == wipman_dir / SNAPSHOTS_DIR
        assert path.name.startswith("snapshot_")
        assert yaml.safe_load(path.read_text()) == build_snapshot(workspace.task_store, workspace.view_store)

    def test_written_on_save_in_debug_mode(self, config, wipman_dir):
        workspace = Workspace.open(config.model_copy(update={"debug": True}))
        try:
            workspace.on_save(wipman_dir / "views" / "hiru.md")
        finally:
            workspace.close()

        assert len(list((wipman_dir / SNAPSHOTS_DIR).iterdir())) == 1

    def test_not_written_by_default(self, workspace, wipman_dir):
        workspace.on_save(wipman_dir / "views" / "hiru.md")
        assert not (wipman_dir / SNAPSHOTS_DIR).exists()

    def test_snapshots_are_not_indexed(self, config, wipman_dir, workspace):
        make_snapshot(wipman_dir, workspace.task_store, workspace.view_store)

        reopened = Workspace.open(config)
        try:
            assert len(reopened.task_store) == 4
        finally:
            reopened.close()
