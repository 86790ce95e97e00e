# src/waitlist/core/clock.py
"""Time utilities shared by tokens, models and services.

Naive datetimes are read as UTC everywhere.
"""

from datetime import UTC, datetime


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


def as_utc(moment: datetime) -> datetime:
    """Return `moment` as an aware UTC datetime, reading naive values as UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)


def epoch_seconds(moment: datetime) -> int:
    """Return `moment` as whole seconds since the Unix epoch."""
    return int(as_utc(moment).timestamp())


def epoch_ms(moment: datetime) -> int:
    """Return `moment` as integer milliseconds since the Unix epoch."""
    return int(as_utc(moment).timestamp() * 1000)
