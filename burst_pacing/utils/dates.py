"""Calendar helpers."""

from datetime import date, datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from burst_pacing.config import DEFAULT_TIMEZONE


def today_in(tz_name: str = DEFAULT_TIMEZONE, now: Optional[datetime] = None) -> date:
    """
    Today's calendar date in the given timezone.

    Args:
        tz_name: IANA zone name, or "UTC"
        now: Reference instant (default: current time). Naive values are UTC.
    """
    tz = timezone.utc if tz_name.upper() == "UTC" else ZoneInfo(tz_name)
    reference = now or datetime.now(timezone.utc)
    if reference.tzinfo is None:
        reference = reference.replace(tzinfo=timezone.utc)
    return reference.astimezone(tz).date()
