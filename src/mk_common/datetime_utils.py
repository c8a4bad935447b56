"""UTC datetime utilities."""

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def utc_day_start(now: datetime | None = None) -> datetime:
    """Return 00:00 UTC of the day containing `now` (defaults to current time)."""
    current = (now or utc_now()).astimezone(timezone.utc)
    return current.replace(hour=0, minute=0, second=0, microsecond=0)


def days_from_now(days: int, now: datetime | None = None) -> datetime:
    return (now or utc_now()) + timedelta(days=days)
