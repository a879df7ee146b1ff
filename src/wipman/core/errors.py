"""
Exceptions raised by the wipman core.

Exception Hierarchy:
    WipmanError (base)
    ├── InvariantViolation (programmer errors, never caught in core)
    ├── ParseError (malformed task or view file)
    ├── UnknownViewError (view id not in the View Store)
    ├── UnknownPathError (id not in the synchronizer path maps)
    ├── NotAWipmanDirectoryError (workspace opened on the wrong directory)
    └── JournalError (unreadable or inconsistent change journal)

Example:
    >>> from wipman.core.errors import ParseError
    >>> try:
    ...     raise ParseError(Path("views/backlog.md"), "missing 'tags'")
    ... except ParseError as e:
    ...     print(e.path, e.reason)
"""

from pathlib import Path


class WipmanError(Exception):
    """
    Base exception for all wipman errors.

    Attributes:
        message: Human-readable error message
        context: Optional dictionary of additional context
    """

    def __init__(self, message: str, **context: object) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        return self.message


class InvariantViolation(WipmanError):
    """
    The in-memory state has diverged from an invariant the engine guarantees.

    Raised for unreachable states such as updating a task that is not stored,
    mutating a task's creation timestamp, or changing the Backlog tags.
    These indicate a bug and are not recoverable by the user.
    """

    def __init__(self, message: str, **context: object) -> None:
        super().__init__(f"BUG - {message}", **context)


class ParseError(WipmanError):
    """
    A task or view file could not be parsed.

    Attributes:
        path: File that failed to parse (None when parsing raw text)
        reason: What is wrong with the file
    """

    def __init__(self, path: Path | None, reason: str) -> None:
        self.path = path
        self.reason = reason
        where = f" {path}" if path is not None else ""
        super().__init__(f"Cannot parse file{where}: {reason}", path=path)


class UnknownViewError(WipmanError):
    """A view id was not found in the View Store."""

    def __init__(self, view_id: str) -> None:
        self.view_id = view_id
        super().__init__(f"Expected to find view {view_id} in the view store, but none found")


class UnknownPathError(WipmanError):
    """No file path is registered for a task or view id."""

    def __init__(self, kind: str, item_id: str) -> None:
        self.kind = kind
        self.item_id = item_id
        super().__init__(
            f"No path found for {kind} {item_id} in index - try reindexing perhaps?",
            kind=kind,
        )


class NotAWipmanDirectoryError(WipmanError):
    """The directory is not a wipman directory (no readable backlog)."""

    def __init__(self, path: Path, status: str) -> None:
        self.path = path
        self.status = status
        super().__init__(f"Not a wipman directory ({status}): {path}", status=status)


class JournalError(WipmanError):
    """The change journal holds a malformed record or an invalid sequence of operations."""

    def __init__(self, message: str, path: Path | None = None) -> None:
        self.path = path
        super().__init__(message, path=path)
