"""UTC conversions between domain datetimes and naive DB columns."""

from datetime import datetime, timezone


def to_db(value: datetime | None) -> datetime | None:
    """Aware datetime -> naive UTC (DateTime columns without timezone)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def from_db(value: datetime | None) -> datetime | None:
    """Naive UTC from the DB -> aware UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
