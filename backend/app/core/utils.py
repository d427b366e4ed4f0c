"""Small shared helpers."""

from datetime import datetime, timezone


def to_naive_utc(value: datetime) -> datetime:
    """Normalize a datetime to naive UTC, the form stored in the database."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def utcnow() -> datetime:
    return datetime.utcnow()
