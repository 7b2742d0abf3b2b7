"""
Datetime utilities.

Provides timezone-aware datetime functions and the business calendar day.
"""

from datetime import UTC, date, datetime, timedelta
from zoneinfo import ZoneInfo


def utc_now() -> datetime:
    """
    Get current UTC datetime with timezone info.

    Returns:
        Current datetime in UTC with timezone awareness
    """
    return datetime.now(UTC)


def business_day(
    now: datetime | None = None, tz: ZoneInfo | str = "UTC"
) -> date:
    """
    Calendar day of a moment in the business time zone.

    Quotas, daily caps and daily income reset when this date changes.

    Args:
        now: Moment to convert (defaults to current UTC time)
        tz: Business time zone

    Returns:
        Calendar date in the business zone
    """
    if isinstance(tz, str):
        tz = ZoneInfo(tz)
    moment = now or utc_now()
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(tz).date()


def day_bounds(day: date, tz: ZoneInfo | str = "UTC") -> tuple[datetime, datetime]:
    """
    UTC start (inclusive) and end (exclusive) of a business day.

    Args:
        day: Business calendar date
        tz: Business time zone

    Returns:
        Tuple of (start, end) in UTC
    """
    if isinstance(tz, str):
        tz = ZoneInfo(tz)
    start = datetime(day.year, day.month, day.day, tzinfo=tz)
    end = start + timedelta(days=1)
    return start.astimezone(UTC), end.astimezone(UTC)


def month_start(now: datetime | None = None) -> datetime:
    """First moment of the current UTC month."""
    moment = now or utc_now()
    return moment.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
