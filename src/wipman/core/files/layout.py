"""
Directory layout of a wipman root.

    <root>/
    ├── views/
    │   ├── backlog.md
    │   └── hiru.md
    ├── aa/
    │   └── aaaaaaaa        task aaaaaaaaaa
    └── bb/
        └── bbbbbbbb        task bbbbbbbbbb

Hidden entries (dot files and directories) and files with an ignored
extension are never treated as tasks or views.
"""

import logging
import re
from collections.abc import Container
from dataclasses import dataclass, field
from pathlib import Path

from wipman.core.files.common import VIEWS_DIR_NAME
from wipman.core.files.events import FileKind

logger = logging.getLogger(__name__)

BACKLOG_STEM = "backlog"
TASK_DIR_LENGTH = 2


@dataclass
class DirectoryScan:
    """Task and view files found under a wipman root."""

    root: Path
    views: list[Path] = field(default_factory=list)
    tasks: list[Path] = field(default_factory=list)


def _is_hidden(path: Path) -> bool:
    return path.name.startswith(".")


def _is_ignored(path: Path, ignored_extensions: Container[str]) -> bool:
    return _is_hidden(path) or path.suffix in ignored_extensions


def backlog_path(root: Path, view_extension: str = ".md") -> Path:
    return root / VIEWS_DIR_NAME / f"{BACKLOG_STEM}{view_extension}"


def slugify(title: str, max_length: int = 50) -> str:
    """
    Filename-safe version of a view title.

    Example:
        >>> slugify("Unused view")
        'unused-view'
    """
    slug = re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")
    if len(slug) > max_length:
        slug = slug[:max_length].rsplit("-", 1)[0]
    return slug or "view"


def new_view_path(
    root: Path,
    title: str,
    view_id: str,
    taken: Container[Path] = (),
    view_extension: str = ".md",
) -> Path:
    """
    Path for a brand-new view file.

    Uses the title slug, adding the view id when that name is taken.
    """
    views_dir = root / VIEWS_DIR_NAME
    path = views_dir / f"{slugify(title)}{view_extension}"
    if path.exists() or path in taken:
        path = views_dir / f"{slugify(title)}-{view_id}{view_extension}"
    return path


def classify_path(
    root: Path,
    path: Path,
    ignored_extensions: Container[str] = (".json",),
) -> FileKind | None:
    """
    Tell whether `path` is a view file, a task file, or neither.

    - `<root>/views/<file>` is a view
    - `<root>/<2 chars>/<file>` is a task
    - anything else (hidden, ignored extension, deeper or shallower) is None
    """
    root = root.resolve()
    path = path.resolve()

    if _is_ignored(path, ignored_extensions) or _is_hidden(path.parent):
        return None

    if path.parent == root / VIEWS_DIR_NAME:
        return FileKind.VIEW

    if path.parent.parent == root and len(path.parent.name) == TASK_DIR_LENGTH:
        return FileKind.TASK

    return None


def scan_root_directory(root: Path, ignored_extensions: Container[str] = (".json",)) -> DirectoryScan:
    """
    Find every view and task file under `root`.

    Raises:
        FileNotFoundError: If `root` does not exist
    """
    if not root.exists():
        raise FileNotFoundError(f"Aborting directory scan, the root path does not exist: {root}")

    logger.debug("Scanning %s", root)
    scan = DirectoryScan(root=root)

    for child in sorted(root.iterdir()):
        if not child.is_dir() or _is_hidden(child):
            continue

        if child.name == VIEWS_DIR_NAME:
            scan.views.extend(
                path for path in sorted(child.iterdir()) if path.is_file() and not _is_ignored(path, ignored_extensions)
            )
        elif len(child.name) == TASK_DIR_LENGTH:
            scan.tasks.extend(
                path for path in sorted(child.iterdir()) if path.is_file() and not _is_ignored(path, ignored_extensions)
            )
        else:
            logger.debug("Skipping %s, not a views or task directory", child)

    logger.info("%d views found", len(scan.views))
    logger.info("%d tasks found", len(scan.tasks))
    return scan
