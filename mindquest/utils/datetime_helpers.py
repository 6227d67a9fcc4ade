"""
Date/Time Handling Utilities

Centralized date handling so every "today" check in the game agrees:
1. "Today" is the calendar date in APP_TIMEZONE, never time-of-day
2. Day markers (lastQuestDate, dailyContent.date, ...) are stored as YYYY-MM-DD
3. Event timestamps (journal, moodHistory, ...) are stored as ISO-8601 with offset,
   so their first 10 characters are the local calendar date
4. Services take a clock callable so tests can pin "now"
"""

import logging
from datetime import datetime, date
from typing import Callable, Optional, Union
from zoneinfo import ZoneInfo

from mindquest.config import APP_TIMEZONE

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

DEFAULT_TIMEZONE = "UTC"


def get_app_timezone(tz_name: Optional[str] = None) -> ZoneInfo:
    """
    Get the timezone used for calendar-day decisions

    Args:
        tz_name: IANA timezone name (defaults to APP_TIMEZONE)

    Returns:
        ZoneInfo object
    """
    tz_str = tz_name or APP_TIMEZONE or DEFAULT_TIMEZONE
    try:
        return ZoneInfo(tz_str)
    except Exception as e:
        logger.error(f"Invalid timezone '{tz_str}': {e}")
        return ZoneInfo(DEFAULT_TIMEZONE)


def now_utc() -> datetime:
    """Get current datetime in UTC (timezone-aware)"""
    return datetime.now(ZoneInfo("UTC"))


def local_now(clock: Clock = now_utc, tz: Optional[ZoneInfo] = None) -> datetime:
    """Current datetime in the app timezone"""
    current = clock()
    if current.tzinfo is None:
        current = current.replace(tzinfo=ZoneInfo("UTC"))
    return current.astimezone(tz or get_app_timezone())


def local_today(clock: Clock = now_utc, tz: Optional[ZoneInfo] = None) -> date:
    """Today's calendar date in the app timezone"""
    return local_now(clock, tz).date()


def date_key(day: date) -> str:
    """Format a date as the stored YYYY-MM-DD marker"""
    return day.isoformat()


def today_key(clock: Clock = now_utc, tz: Optional[ZoneInfo] = None) -> str:
    return date_key(local_today(clock, tz))


def timestamp_now(clock: Clock = now_utc, tz: Optional[ZoneInfo] = None) -> str:
    """ISO-8601 timestamp (with offset) for event records"""
    return local_now(clock, tz).isoformat()


def day_of(value: Union[str, date, datetime, None]) -> Optional[str]:
    """
    Extract the YYYY-MM-DD day marker from a stored value

    Accepts day markers, ISO timestamps, date and datetime objects.
    Returns None for absent or unparsable values.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str) and len(value) >= 10:
        prefix = value[:10]
        try:
            return date.fromisoformat(prefix).isoformat()
        except ValueError:
            return None
    return None


def parse_timestamp(value: Union[str, datetime, None]) -> datetime:
    """
    Parse a stored timestamp into an aware datetime

    Naive values are assumed to be UTC; unparsable values sort as the
    earliest possible time.
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except (TypeError, ValueError):
            logger.warning(f"Unparsable timestamp {value!r}, treating as epoch")
            return datetime.min.replace(tzinfo=ZoneInfo("UTC"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=ZoneInfo("UTC"))
    return parsed
