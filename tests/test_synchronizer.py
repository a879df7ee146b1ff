"""
Tests for the File Synchronizer: store changes reaching the files, and
edited files reaching the stores.

All tests run against an opened workspace on the fixture directory.
"""

import os
from datetime import datetime, timezone

import pytest

from conftest import BACKLOG, FIXTURE_FILES, HIRU, TASK_FOO, UNUSED_VIEW
from wipman.core.errors import ParseError, UnknownPathError, UnknownViewError
from wipman.core.files.events import FileAdded, FileKind, FileUpdated
from wipman.core.files.task_files import task_relative_path

FOO_LINE = "- [ ] Task foo  [aaaaaaaaaa](../aa/aaaaaaaa)\n"


def linked_line(task, completed: bool = False) -> str:
    box = "x" if completed else " "
    return f"- [{box}] {task.title}  [{task.id}](../{task.id[:2]}/{task.id[2:]})\n"


def read_all(root) -> dict[str, str]:
    return {relative: (root / relative).read_text() for relative in FIXTURE_FILES}


@pytest.fixture
def backlog(wipman_dir):
    return wipman_dir / "views" / "backlog.md"


@pytest.fixture
def hiru(wipman_dir):
    return wipman_dir / "views" / "hiru.md"


@pytest.fixture
def foo(wipman_dir):
    return wipman_dir / "aa" / "aaaaaaaa"


class TestIndex:
    def test_path_maps(self, workspace, wipman_dir):
        sync = workspace.synchronizer

        assert sync.task_path("aaaaaaaaaa") == wipman_dir / "aa" / "aaaaaaaa"
        assert sync.view_path("0000000000") == wipman_dir / "views" / "backlog.md"
        assert sync.view_id_at(wipman_dir / "views" / "hiru.md") == "1111111111"
        assert sync.view_id_at(wipman_dir / "views" / "nope.md") is None

    def test_unknown_ids(self, workspace):
        with pytest.raises(UnknownPathError, match="try reindexing"):
            workspace.synchronizer.task_path("zzzzzzzzzz")
        with pytest.raises(UnknownPathError):
            workspace.synchronizer.view_path("9999999999")

    def test_parse_error_leaves_maps_untouched(self, workspace, foo):
        before = dict(workspace.synchronizer.task_paths)
        foo.write_text("garbage")

        with pytest.raises(ParseError):
            workspace.synchronizer.index()

        assert workspace.synchronizer.task_paths == before


class TestStoreChangesReachFiles:
    def test_new_task(self, workspace, wipman_dir, backlog, hiru, recorder):
        """A new task gets its own file and a line in every matching view."""
        changes = recorder(workspace.synchronizer.changes)

        task = workspace.create_task("Buy milk", tags={"hiru"})

        path = wipman_dir / task_relative_path(task.id)
        assert path.read_text().startswith(f"id={task.id}\ntitle=Buy milk\n")
        assert "\ntags=hiru\n" in path.read_text()
        assert backlog.read_text() == BACKLOG + linked_line(task)
        assert hiru.read_text() == HIRU + linked_line(task)
        assert (wipman_dir / "views" / "unused_view.md").read_text() == UNUSED_VIEW
        assert FileAdded(kind=FileKind.TASK, path=path, item_id=task.id) in changes

    def test_new_view(self, workspace, wipman_dir, recorder):
        changes = recorder(workspace.synchronizer.changes)

        view = workspace.create_view("Weekend")

        path = wipman_dir / "views" / "weekend.md"
        text = path.read_text()
        assert text.startswith(f"id={view.id}\ntitle=Weekend\n")
        assert "\ntags=\n---\n" in text
        assert text.endswith(BACKLOG.split("---\n", 1)[1])
        assert changes == [FileAdded(kind=FileKind.VIEW, path=path, item_id=view.id)]

    def test_untouched_view_is_not_rewritten(self, workspace, wipman_dir, recorder):
        changes = recorder(workspace.synchronizer.changes)

        workspace.create_task("Untagged")

        assert {change.item_id for change in changes if change.kind is FileKind.VIEW} == {"0000000000"}


class TestSavedViewFile:
    def test_deleted_line_deletes_task(self, workspace, wipman_dir, backlog, hiru):
        """Removing a line from any view deletes the task and its file everywhere."""
        hiru.write_text(HIRU.replace(FOO_LINE, ""))

        assert workspace.on_save(hiru) is FileKind.VIEW

        assert "aaaaaaaaaa" not in workspace.task_store
        assert not (wipman_dir / "aa").exists()
        assert backlog.read_text() == BACKLOG.replace(FOO_LINE, "")
        assert hiru.read_text() == HIRU.replace(FOO_LINE, "")

    def test_deleted_backlog_line_deletes_task(self, workspace, wipman_dir, backlog, hiru):
        backlog.write_text(BACKLOG.replace(FOO_LINE, ""))

        workspace.on_save(backlog)

        assert "aaaaaaaaaa" not in workspace.task_store
        assert not (wipman_dir / "aa" / "aaaaaaaa").exists()
        assert hiru.read_text() == HIRU.replace(FOO_LINE, "")

    def test_toggle_twice_restores_every_byte(self, workspace, wipman_dir, hiru):
        originals = read_all(wipman_dir)

        hiru.write_text(HIRU.replace("- [ ] Task bar", "- [x] Task bar"))
        workspace.on_save(hiru)

        assert workspace.task_store.get("bbbbbbbbbb").completed is True
        assert "\ncompleted=true\n" in (wipman_dir / "bb" / "bbbbbbbb").read_text()
        assert "- [x] Task bar  [bbbbbbbbbb]" in (wipman_dir / "views" / "backlog.md").read_text()

        hiru.write_text(HIRU)
        workspace.on_save(hiru)

        assert read_all(wipman_dir) == originals

    def test_stub_line_becomes_task(self, workspace, wipman_dir, backlog, hiru):
        hiru.write_text(HIRU + "- [ ] Fresh idea\n")

        workspace.on_save(hiru)

        (task,) = [task for task in workspace.task_store.all() if task.title == "Fresh idea"]
        assert task.tags == {"hiru"}
        assert (wipman_dir / task_relative_path(task.id)).exists()
        assert hiru.read_text() == HIRU + linked_line(task)
        assert backlog.read_text() == BACKLOG + linked_line(task)

    def test_renamed_line_renames_task(self, workspace, backlog, hiru, foo):
        hiru.write_text(HIRU.replace("Task foo", "Task foo, renamed"))

        workspace.on_save(hiru)

        assert "\ntitle=Task foo, renamed\n" in foo.read_text()
        assert "- [ ] Task foo, renamed  [aaaaaaaaaa]" in backlog.read_text()

    def test_retag_rewrites_content(self, workspace, wipman_dir, hiru):
        retagged = HIRU.replace("tags=hiru", "tags=")
        hiru.write_text(retagged)

        workspace.on_save(hiru)

        assert hiru.read_text() == (
            retagged
            + "- [ ] Task barrrr  [cccccccccc](../cc/cccccccc)\n"
            + "- [x] Task bazzzz  [dddddddddd](../dd/dddddddd)\n"
        )
        assert workspace.view_store.views_showing("cccccccccc") == {"0000000000", "1111111111"}

    def test_saved_file_is_reported(self, workspace, hiru, recorder):
        changes = recorder(workspace.synchronizer.changes)

        workspace.on_save(hiru)

        assert changes == [FileUpdated(kind=FileKind.VIEW, path=hiru, item_id="1111111111")]

    def test_unknown_view_id(self, workspace, wipman_dir):
        stray = wipman_dir / "views" / "stray.md"
        stray.write_text(UNUSED_VIEW.replace("2222222222", "9999999999"))

        with pytest.raises(UnknownViewError):
            workspace.on_save(stray)

    def test_malformed_view(self, workspace, hiru):
        hiru.write_text(HIRU + "not a checklist line\n")

        with pytest.raises(ParseError, match="cannot understand line"):
            workspace.on_save(hiru)


class TestSavedTaskFile:
    def test_mtime_wins_over_metadata(self, workspace, backlog, hiru, foo):
        foo.write_text(TASK_FOO.replace("title=Task foo", "title=Task foo renamed"))
        modified = datetime(2023, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        os.utime(foo, (modified.timestamp(), modified.timestamp()))

        assert workspace.on_save(foo) is FileKind.TASK

        assert workspace.task_store.get("aaaaaaaaaa").updated == modified
        assert "\nupdated=2023-01-02T03:04:05.000Z\n" in foo.read_text()
        assert "- [ ] Task foo renamed  [aaaaaaaaaa](../aa/aaaaaaaa)\n" in backlog.read_text()
        assert "- [ ] Task foo renamed  [aaaaaaaaaa](../aa/aaaaaaaa)\n" in hiru.read_text()

    def test_newer_mtime_alone_changes_nothing(self, workspace, foo, recorder):
        task_changes = recorder(workspace.task_store.changes)
        file_changes = recorder(workspace.synchronizer.changes)
        foo.touch()

        workspace.on_save(foo)

        assert task_changes == []
        assert file_changes == [FileUpdated(kind=FileKind.TASK, path=foo, item_id="aaaaaaaaaa")]
        assert foo.read_text() == TASK_FOO

    def test_tag_edit_moves_task_out_of_view(self, workspace, backlog, hiru, foo):
        foo.write_text(TASK_FOO.replace("tags=hiru", "tags="))

        workspace.on_save(foo)

        assert hiru.read_text() == HIRU.replace(FOO_LINE, "")
        assert FOO_LINE in backlog.read_text()

    def test_completion_edit(self, workspace, backlog, foo):
        foo.write_text(TASK_FOO.replace("completed=false", "completed=true"))

        workspace.on_save(foo)

        assert "- [x] Task foo  [aaaaaaaaaa]" in backlog.read_text()

    def test_new_task_file_is_adopted(self, workspace, wipman_dir, backlog, hiru):
        path = wipman_dir / "ee" / "eeeeeeee"
        path.parent.mkdir()
        path.write_text(
            TASK_FOO.replace("aaaaaaaaaa", "eeeeeeeeee").replace("title=Task foo", "title=Written by hand")
        )

        workspace.on_save(path)

        assert "eeeeeeeeee" in workspace.task_store
        assert workspace.synchronizer.task_path("eeeeeeeeee") == path
        assert hiru.read_text().endswith("- [ ] Written by hand  [eeeeeeeeee](../ee/eeeeeeee)\n")
        assert backlog.read_text().endswith("- [ ] Written by hand  [eeeeeeeeee](../ee/eeeeeeee)\n")

    def test_ignored_files(self, workspace, wipman_dir, recorder):
        changes = recorder(workspace.synchronizer.changes)
        notes = wipman_dir / "aa" / "notes.json"
        notes.write_text("{}")

        assert workspace.on_save(notes) is None
        assert workspace.on_save(wipman_dir / "README") is None
        assert changes == []


class TestDeletedFiles:
    def test_deleted_task_file(self, workspace, wipman_dir, backlog, hiru, foo):
        foo.unlink()

        assert workspace.on_delete(foo) is FileKind.TASK

        assert "aaaaaaaaaa" not in workspace.task_store
        assert not (wipman_dir / "aa").exists()
        assert backlog.read_text() == BACKLOG.replace(FOO_LINE, "")
        assert hiru.read_text() == HIRU.replace(FOO_LINE, "")

    def test_deleted_view_file(self, workspace, hiru):
        hiru.unlink()

        assert workspace.on_delete(hiru) is FileKind.VIEW

        assert "1111111111" not in workspace.view_store
        assert len(workspace.task_store) == 4
        assert workspace.view_store.views_showing("aaaaaaaaaa") == {"0000000000"}

    def test_unknown_files(self, workspace, wipman_dir):
        assert workspace.on_delete(wipman_dir / "zz" / "zzzzzzzz") is FileKind.TASK
        assert workspace.on_delete(wipman_dir / "views" / "gone.md") is FileKind.VIEW
        assert len(workspace.task_store) == 4
        assert len(workspace.view_store) == 3
