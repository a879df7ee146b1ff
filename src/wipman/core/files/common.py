"""
Shared primitives of the task and view file formats.

Both formats are a block of `key=value` metadata lines, a line holding
exactly `---`, and a body. Sets are stored sorted and comma-joined, booleans
as `true`/`false`, timestamps as ISO 8601 with milliseconds.
"""

from collections.abc import Iterable
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError

from wipman.core.dates import deserialize_date
from wipman.core.errors import ParseError

METADATA_DELIMITER = "---"
VIEWS_DIR_NAME = "views"

Metadata = dict[str, str]


def serialize_set(values: Iterable[str]) -> str:
    return ",".join(sorted(values))


def deserialize_set(raw: str) -> set[str]:
    """Parse a comma-joined set. An empty value means an empty set."""
    if raw == "":
        return set()
    return set(raw.split(","))


def serialize_bool(value: bool) -> str:
    return "true" if value else "false"


def deserialize_bool(raw: str, path: Path | None = None) -> bool:
    if raw == "true":
        return True
    if raw == "false":
        return False
    raise ParseError(path, f"'{raw}' cannot be read as a boolean, expected 'true' or 'false'")


def parse_date(raw: str, key: str, path: Path | None = None) -> datetime:
    try:
        return deserialize_date(raw)
    except ValueError as e:
        raise ParseError(path, f"'{key}' is not a valid timestamp: {raw!r}") from e


def split_metadata_and_content(raw: str, path: Path | None = None) -> tuple[str, str]:
    """
    Split a file into its metadata block and its body.

    Raises:
        ParseError: If the `---` delimiter line is missing
    """
    delimiter = f"\n{METADATA_DELIMITER}\n"
    if delimiter not in raw:
        if raw.endswith(f"\n{METADATA_DELIMITER}"):
            return raw[: -len(METADATA_DELIMITER) - 1], ""
        raise ParseError(path, f"metadata delimiter '{METADATA_DELIMITER}' not found")

    raw_metadata, raw_content = raw.split(delimiter, 1)
    return raw_metadata, raw_content


def parse_metadata(raw: str, path: Path | None = None) -> Metadata:
    """
    Parse `key=value` lines. Values may contain `=`.

    Raises:
        ParseError: On a line without `=` or a repeated key
    """
    metadata: Metadata = {}
    for line in raw.split("\n"):
        if "=" not in line:
            raise ParseError(path, f"invalid metadata line, expected 'key=value': {line!r}")

        key, value = line.split("=", 1)
        if key in metadata:
            raise ParseError(
                path,
                f"metadata keys must be unique, but key '{key}' is used multiple times",
            )
        metadata[key] = value

    return metadata


def require_keys(metadata: Metadata, keys: Iterable[str], kind: str, path: Path | None = None) -> None:
    """Raise ParseError listing every mandatory key that is missing."""
    missing = [key for key in keys if key not in metadata]
    if missing:
        reasons = "\n".join(f"  - {kind} file must contain '{key}' in metadata" for key in missing)
        raise ParseError(path, f"invalid {kind} file format:\n{reasons}")


def describe_validation_error(error: ValidationError) -> str:
    return "; ".join(str(detail["msg"]) for detail in error.errors())
