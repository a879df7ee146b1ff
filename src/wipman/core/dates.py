"""
Timestamp helpers.

Timestamps are timezone-aware UTC datetimes with millisecond precision so
that serializing and re-parsing a file yields an identical value.
"""

from datetime import datetime, timezone


def truncate_to_millis(value: datetime) -> datetime:
    """Drop sub-millisecond precision and normalize to UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.replace(microsecond=(value.microsecond // 1000) * 1000)


def now() -> datetime:
    """Current UTC time, truncated to milliseconds."""
    return truncate_to_millis(datetime.now(timezone.utc))


def from_timestamp(seconds: float) -> datetime:
    """Convert a POSIX timestamp (e.g. a file mtime) to a UTC datetime."""
    return truncate_to_millis(datetime.fromtimestamp(seconds, tz=timezone.utc))


def serialize_date(value: datetime) -> str:
    """
    Format as ISO 8601 with milliseconds and a Z suffix.

    Example:
        >>> serialize_date(datetime(2022, 10, 1, 18, tzinfo=timezone.utc))
        '2022-10-01T18:00:00.000Z'
    """
    value = truncate_to_millis(value)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def deserialize_date(raw: str) -> datetime:
    """
    Parse an ISO 8601 timestamp, accepting a trailing Z.

    Raises:
        ValueError: If the value is not a valid timestamp
    """
    parsed = datetime.fromisoformat(raw.strip().replace("Z", "+00:00"))
    return truncate_to_millis(parsed)
