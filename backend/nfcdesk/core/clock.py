"""Clock helpers - every timestamp in the engine is timezone-aware UTC."""

from datetime import date, datetime, timezone, tzinfo


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Normalize a stored timestamp to aware UTC.

    SQLite returns DateTime(timezone=True) columns as naive values holding the
    UTC wall clock; PostgreSQL returns aware values.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def local_today(now: datetime, tz: tzinfo) -> date:
    """Facility-local calendar date of an aware instant."""
    return now.astimezone(tz).date()
