"""UTC timestamp helpers.

Every timestamp is stored as an ISO-8601 string in UTC with millisecond
precision and a trailing ``Z``, so string order equals chronological order.
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(UTC)


def to_iso(value: datetime) -> str:
    """Format a datetime in the canonical storage format."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso(value: str) -> datetime:
    """Parse an ISO-8601 date or datetime string. Naive values are taken as UTC.

    Raises:
        ValueError: If the string is not ISO-8601 or falls outside the UTC range
    """
    parsed = datetime.fromisoformat(value.strip())
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    try:
        return parsed.astimezone(UTC)
    except OverflowError as e:
        msg = f"Date out of range: {value}"
        raise ValueError(msg) from e


def now_iso() -> str:
    """Return the current time in the canonical storage format."""
    return to_iso(utc_now())
