"""
Random id generator.

Task and view ids are short random strings of lowercase letters. A task id
doubles as its file location: the first two characters name the directory
and the remaining characters the file.

Example:
    >>> task_id = generate_id(existing={"aaaaaaaaaa"})
    >>> len(task_id)
    10
"""

import re
import secrets
import string
from collections.abc import Container

# Characters for random ID generation (lowercase letters only, see link grammar)
ID_CHARS = string.ascii_lowercase
ID_LENGTH = 10

# Reserved id of the Backlog view, never produced by generate_id
BACKLOG_ID = "0000000000"

_ID_PATTERN = re.compile(rf"^[a-z]{{{ID_LENGTH}}}$")


def generate_id(
    existing: Container[str] | None = None,
    length: int = ID_LENGTH,
    max_attempts: int = 10,
) -> str:
    """
    Generate a random id that is not in `existing`.

    Args:
        existing: Ids already in use (collision detection)
        length: Number of characters
        max_attempts: Maximum collision retry attempts

    Returns:
        New id

    Raises:
        RuntimeError: If unable to generate a unique id after max_attempts
    """
    for _ in range(max_attempts):
        new_id = "".join(secrets.choice(ID_CHARS) for _ in range(length))
        if existing is None or new_id not in existing:
            return new_id

    raise RuntimeError(f"Failed to generate unique id after {max_attempts} attempts")


def is_valid_id(value: str) -> bool:
    """Check whether a string is a well-formed task id."""
    return bool(_ID_PATTERN.match(value))
