"""
Tests for the wipman CLI commands.
"""

from typer.testing import CliRunner

from conftest import HIRU
from wipman import __version__
from wipman.cli import app
from wipman.cli.errors import ExitCode
from wipman.core.files.task_files import read_task_file
from wipman.core.files.view_files import read_view_file

runner = CliRunner()


def invoke(root, *args):
    return runner.invoke(app, ["--root", str(root), *args])


def text(result) -> str:
    """Command output with rich line wrapping undone."""
    return " ".join(result.output.split())


class TestInit:
    def test_init_new_directory(self, tmp_path):
        """Test that init creates the directory and an empty backlog."""
        target = tmp_path / "notes"

        result = runner.invoke(app, ["init", str(target)])

        assert result.exit_code == 0
        assert "Initialized" in text(result)
        backlog = read_view_file(target / "views" / "backlog.md")
        assert backlog.id == "0000000000"

    def test_init_existing_wipman_directory(self, wipman_dir):
        backlog = (wipman_dir / "views" / "backlog.md").read_text()

        result = runner.invoke(app, ["init", str(wipman_dir)])

        assert result.exit_code == 0
        assert "already a wipman directory" in text(result)
        assert (wipman_dir / "views" / "backlog.md").read_text() == backlog

    def test_init_uses_root_option(self, tmp_path):
        result = runner.invoke(app, ["--root", str(tmp_path), "init"])

        assert result.exit_code == 0
        assert (tmp_path / "views" / "backlog.md").exists()

    def test_init_on_a_file(self, tmp_path):
        target = tmp_path / "file"
        target.write_text("x")

        result = runner.invoke(app, ["init", str(target)])

        assert result.exit_code == ExitCode.USER_ERROR


class TestTaskAndViewCommands:
    def test_task_new(self, wipman_dir):
        result = invoke(wipman_dir, "task", "new", "Buy milk", "--tag", "hiru")

        assert result.exit_code == 0
        assert "Created task" in text(result)
        assert "Buy milk" in (wipman_dir / "views" / "hiru.md").read_text()
        assert "Buy milk" in (wipman_dir / "views" / "backlog.md").read_text()

    def test_view_new(self, wipman_dir):
        result = invoke(wipman_dir, "view", "new", "Weekend")

        assert result.exit_code == 0
        assert "4 tasks" in text(result)
        view = read_view_file(wipman_dir / "views" / "weekend.md")
        assert view.title == "Weekend"
        assert len(view.content) == 4

    def test_task_new_rejects_comma_in_tag(self, wipman_dir):
        result = invoke(wipman_dir, "task", "new", "Buy milk", "--tag", "a,b")

        assert result.exit_code == ExitCode.USER_ERROR
        assert "Invalid Task" in text(result)
        assert "cannot contain commas" in text(result)
        assert "Buy milk" not in (wipman_dir / "views" / "backlog.md").read_text()

    def test_view_new_rejects_multiline_title(self, wipman_dir):
        views_before = sorted((wipman_dir / "views").iterdir())

        result = invoke(wipman_dir, "view", "new", "Two\nlines")

        assert result.exit_code == ExitCode.USER_ERROR
        assert "title must fit on one line" in text(result)
        assert sorted((wipman_dir / "views").iterdir()) == views_before

    def test_not_a_wipman_directory(self, tmp_path):
        result = invoke(tmp_path, "task", "new", "Buy milk")

        assert result.exit_code == ExitCode.USER_ERROR
        assert "Not a wipman directory" in text(result)


class TestFileCommands:
    def test_saved_view(self, wipman_dir):
        (wipman_dir / "views" / "hiru.md").write_text(HIRU.replace("- [ ] Task foo", "- [x] Task foo"))

        result = invoke(wipman_dir, "saved", "views/hiru.md")

        assert result.exit_code == 0
        assert "Reconciled view file" in text(result)
        assert read_task_file(wipman_dir / "aa" / "aaaaaaaa").completed is True

    def test_saved_malformed_file(self, wipman_dir):
        (wipman_dir / "views" / "hiru.md").write_text(HIRU + "oops\n")

        result = invoke(wipman_dir, "saved", "views/hiru.md")

        assert result.exit_code == ExitCode.USER_ERROR
        assert "Cannot parse" in text(result)

    def test_saved_ignored_file(self, wipman_dir):
        result = invoke(wipman_dir, "saved", "notes.txt")

        assert result.exit_code == 0
        assert "Ignored" in text(result)

    def test_deleted_task(self, wipman_dir):
        (wipman_dir / "aa" / "aaaaaaaa").unlink()

        result = invoke(wipman_dir, "deleted", str(wipman_dir / "aa" / "aaaaaaaa"))

        assert result.exit_code == 0
        assert "aaaaaaaaaa" not in (wipman_dir / "views" / "hiru.md").read_text()


class TestVerifyAndStatus:
    def test_verify_clean(self, wipman_dir):
        result = invoke(wipman_dir, "verify")

        assert result.exit_code == 0
        assert "No issues found" in text(result)

    def test_verify_problems(self, wipman_dir):
        (wipman_dir / "views" / "hiru.md").write_text(HIRU.replace("- [ ] Task foo", "- [x] Task foo"))

        result = invoke(wipman_dir, "verify")

        assert result.exit_code == ExitCode.GENERAL_ERROR
        assert "Problems found" in text(result)

    def test_status(self, wipman_dir):
        result = invoke(wipman_dir, "status")

        assert result.exit_code == 0
        assert "Tasks" in text(result)
        assert "HIRU" in text(result)

    def test_version(self):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in text(result)
