"""Wall-clock helpers.

Timestamps are stored as naive UTC (``DateTime`` without time zone) so the
same values compare cleanly on PostgreSQL and on the SQLite test database.
"""
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current UTC time as a naive datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime | None) -> datetime | None:
    """Normalise an incoming datetime (aware or naive) to naive UTC."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
