"""
Timestamp helpers for binding and unpacking date/time columns.

Drivers disagree on what a timestamp column comes back as: psycopg2
returns ``datetime``, sqlite3 returns ISO-8601 text (or whatever number
was stored). These helpers normalise in both directions so unpackers
stay one-liners::

    created = stmt.query_single("created_at", type_=from_timestamp)

Conventions:
    - Bound timestamps are naive UTC (``to_timestamp``)
    - Naive values read back are taken to be UTC
    - ``offset_datetime_from_timestamp`` converts to the local zone

STDLIB ONLY.
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(UTC)


def to_timestamp(dt: datetime | None) -> datetime | None:
    """Convert a datetime to the naive-UTC form bound to timestamp columns."""
    if dt is None:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(UTC).replace(tzinfo=None)
    return dt


def from_timestamp(value: object) -> datetime | None:
    """Convert a driver timestamp value to an aware UTC datetime.

    Accepts ``datetime``, ISO-8601 strings and epoch seconds.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        dt = datetime.fromisoformat(value)
    elif isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, UTC)
    else:
        raise TypeError(f"Cannot convert {type(value).__name__} to a timestamp")
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt


def offset_datetime_from_timestamp(value: object) -> datetime | None:
    """Convert a driver timestamp value to an aware datetime in the local zone."""
    dt = from_timestamp(value)
    if dt is None:
        return None
    return dt.astimezone()
