"""
View file format.

    id=1111111111
    title=HIRU
    created=2022-10-01T18:00:00.000Z
    updated=2022-10-04T16:41:23.858Z
    tags=hiru
    ---
    - [ ] Task foo  [aaaaaaaaaa](../aa/aaaaaaaa)
    - [x] Task bar  [bbbbbbbbbb](../bb/bbbbbbbb)
    - [ ] A stub the user just typed

Besides whole-file (de)serialization this module offers line-level patching
of the content section, which leaves every other byte of the file alone.
"""

import logging
import re
from collections.abc import Callable
from pathlib import Path

from pydantic import ValidationError

from wipman.core.dates import serialize_date
from wipman.core.errors import ParseError
from wipman.core.files.common import (
    METADATA_DELIMITER,
    describe_validation_error,
    deserialize_set,
    parse_date,
    parse_metadata,
    require_keys,
    serialize_set,
    split_metadata_and_content,
)
from wipman.core.views.models import View, ViewLine

logger = logging.getLogger(__name__)

MANDATORY_VIEW_METADATA = ("id", "created", "updated", "title", "tags")

UNCHECKED_PREFIX = "- [ ] "
CHECKED_PREFIX = "- [x] "

# Anatomy of a linked line:
#   - [ ] Title  [abcdefghij](../ab/cdefghij)
#                 ^^^^^^^^^^ id   ^^ dir ^^^^^^^^ path
_LINE_PATTERN = re.compile(
    r"^- \[(?P<completed>[ x])\] "
    r"(?P<title>.*?)"
    r"(?P<link>\s+\[(?P<id>[a-z]{10})\]\(\.\./(?P<dir>[a-z]{2})/(?P<path>[a-z]{8})\))?$"
)


def serialize_view_line(line: ViewLine) -> str:
    prefix = CHECKED_PREFIX if line.completed else UNCHECKED_PREFIX
    link = f"  [{line.id}](../{line.id[:2]}/{line.id[2:]})" if line.id else ""
    return f"{prefix}{line.title}{link}"


def parse_view_line(line: str, path: Path | None = None) -> ViewLine:
    """
    Parse one checklist line of a view.

    Raises:
        ParseError: If the line is not a checklist entry, or its link text
            and link target name different tasks
    """
    match = _LINE_PATTERN.match(line)
    if match is None:
        if not (line.startswith(UNCHECKED_PREFIX) or line.startswith(CHECKED_PREFIX)):
            raise ParseError(
                path,
                f'cannot understand line, make sure that it starts with either "{UNCHECKED_PREFIX}"'
                f' or "{CHECKED_PREFIX}". Line: {line}',
            )
        raise ParseError(path, f"cannot understand line: {line}")

    task_id = match.group("id")
    if task_id is not None:
        path_id = f"{match.group('dir')}{match.group('path')}"
        if task_id != path_id:
            raise ParseError(
                path,
                "IDs in the link description and path do not match:\n"
                f"  link: {match.group('link').strip()}\n"
                f"  id  : {task_id}\n"
                f"  path: {path_id}\n",
            )

    try:
        return ViewLine(
            completed=match.group("completed") == "x",
            title=match.group("title").rstrip(),
            id=task_id,
        )
    except ValidationError as e:
        raise ParseError(path, f"invalid line {line!r}: {describe_validation_error(e)}") from e


def _is_blank(line: str) -> bool:
    return line.strip() == ""


def _view_from_metadata(raw_metadata: str, path: Path | None) -> View:
    metadata = parse_metadata(raw_metadata, path)
    require_keys(metadata, MANDATORY_VIEW_METADATA, "view", path)
    created = parse_date(metadata["created"], "created", path)
    updated = parse_date(metadata["updated"], "updated", path)
    try:
        return View(
            id=metadata["id"],
            title=metadata["title"],
            created=created,
            updated=updated,
            tags=deserialize_set(metadata["tags"]),
            content=[],
        )
    except ValidationError as e:
        raise ParseError(path, f"invalid view metadata: {describe_validation_error(e)}") from e


def deserialize_view(raw: str, path: Path | None = None) -> View:
    """
    Parse the text of a view file. Blank content lines are skipped.

    Raises:
        ParseError: If the file is empty or malformed
    """
    if raw == "":
        raise ParseError(path, "an empty file cannot be read as a view")

    raw_metadata, raw_content = split_metadata_and_content(raw, path)
    view = _view_from_metadata(raw_metadata, path)

    content: list[ViewLine] = []
    for line in raw_content.split("\n"):
        if _is_blank(line):
            continue
        content.append(parse_view_line(line, path))

    view.content = content
    return view


def serialize_view_header(view: View) -> str:
    metadata = [
        f"id={view.id}",
        f"title={view.title}",
        f"created={serialize_date(view.created)}",
        f"updated={serialize_date(view.updated)}",
        f"tags={serialize_set(view.tags)}",
    ]
    return "\n".join([*metadata, METADATA_DELIMITER]) + "\n"


def serialize_view_content(lines: list[ViewLine]) -> str:
    return "".join(f"{serialize_view_line(line)}\n" for line in lines)


def serialize_view(view: View) -> str:
    return serialize_view_header(view) + serialize_view_content(view.content)


def read_view_file(path: Path) -> View:
    logger.debug("Reading view file %s", path)
    return deserialize_view(path.read_text(encoding="utf-8"), path)


def read_view_metadata(path: Path) -> View:
    """Read only the metadata of a view file; the content is left empty."""
    raw = path.read_text(encoding="utf-8")
    raw_metadata, _ = split_metadata_and_content(raw, path)
    return _view_from_metadata(raw_metadata, path)


def write_view_file(path: Path, view: View) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(serialize_view(view), encoding="utf-8")


# ----------------------------------------------------------------------
# Line-level patching
# ----------------------------------------------------------------------

LinePatcher = Callable[[list[str]], list[str]]


def split_view_text(raw: str, path: Path | None = None) -> tuple[list[str], list[str]]:
    """
    Split raw view text into header lines (delimiter included) and content lines.

    `"\\n".join(header + content) == raw` always holds.
    """
    lines = raw.split("\n")
    try:
        delimiter_at = lines.index(METADATA_DELIMITER)
    except ValueError as e:
        raise ParseError(path, f"metadata delimiter '{METADATA_DELIMITER}' not found") from e
    return lines[: delimiter_at + 1], lines[delimiter_at + 1 :]


def patch_view_file(path: Path, patch: LinePatcher) -> bool:
    """
    Rewrite the content section of a view file in place.

    Args:
        path: View file
        patch: Receives the raw content lines, returns the new ones

    Returns:
        True if the file changed and was written
    """
    raw = path.read_text(encoding="utf-8")
    header, content = split_view_text(raw, path)
    patched = "\n".join(header + patch(content))
    if patched == raw:
        return False

    path.write_text(patched, encoding="utf-8")
    return True


def replace_line(task_id: str, line: ViewLine, path: Path | None = None) -> LinePatcher:
    """Patcher that re-renders the line linked to `task_id`."""

    def patch(content: list[str]) -> list[str]:
        patched = []
        for raw in content:
            if not _is_blank(raw) and parse_view_line(raw, path).id == task_id:
                patched.append(serialize_view_line(line))
            else:
                patched.append(raw)
        return patched

    return patch


def remove_line(task_id: str, path: Path | None = None) -> LinePatcher:
    """Patcher that drops the line linked to `task_id`."""

    def patch(content: list[str]) -> list[str]:
        return [raw for raw in content if _is_blank(raw) or parse_view_line(raw, path).id != task_id]

    return patch


def add_line(line: ViewLine, path: Path | None = None) -> LinePatcher:
    """
    Patcher that adds a linked line.

    The first stub with the same title and completion status gets the link
    (the task was just created from it); otherwise the line goes right after
    the last non-blank content line.
    """

    def patch(content: list[str]) -> list[str]:
        for position, raw in enumerate(content):
            if _is_blank(raw):
                continue
            existing = parse_view_line(raw, path)
            if existing.id == line.id:
                return content
            if existing.id is None and existing.title == line.title and existing.completed == line.completed:
                return content[:position] + [serialize_view_line(line)] + content[position + 1 :]

        insert_at = 0
        for position, raw in enumerate(content):
            if not _is_blank(raw):
                insert_at = position + 1
        return content[:insert_at] + [serialize_view_line(line)] + content[insert_at:]

    return patch


def replace_content(lines: list[ViewLine]) -> LinePatcher:
    """Patcher that replaces the whole content section."""

    def patch(content: list[str]) -> list[str]:
        return [serialize_view_line(line) for line in lines] + [""]

    return patch
