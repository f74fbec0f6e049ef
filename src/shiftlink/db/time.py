# src/shiftlink/db/time.py
"""Time utilities for database models and the signing protocol."""

import time
from datetime import UTC, datetime


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


def now_ms() -> int:
    """Return the current Unix time in milliseconds."""
    return time.time_ns() // 1_000_000


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from backends that drop the offset."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def start_of_day(value: datetime) -> datetime:
    """Return midnight (UTC) of the day containing ``value``."""
    return as_utc(value).replace(hour=0, minute=0, second=0, microsecond=0)
