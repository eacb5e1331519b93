"""Local calendar helpers.

All comparisons happen in one civil timezone (Europe/Rome) so that a check made
right after midnight UTC still lands on the crew member's local day.
"""

from __future__ import annotations

import calendar
import re
from datetime import date, datetime, time, timedelta
from typing import Optional, Union
from zoneinfo import ZoneInfo

from ..core.constants import LOCAL_TIMEZONE

LOCAL_TZ = ZoneInfo(LOCAL_TIMEZONE)


def set_local_timezone(name: str) -> None:
    global LOCAL_TZ
    LOCAL_TZ = ZoneInfo(name)


_HHMM = re.compile(r"^\d{2}:\d{2}$")
_HHMMSS = re.compile(r"^\d{2}:\d{2}:\d{2}$")


def now_local() -> datetime:
    """Current time in the local timezone.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now(LOCAL_TZ)


def to_local(value: datetime) -> datetime:
    """Convert an aware datetime to local time; naive values are taken as local."""
    if value.tzinfo is None:
        return value.replace(tzinfo=LOCAL_TZ)
    return value.astimezone(LOCAL_TZ)


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value[:10], "%Y-%m-%d").date()


def to_local_date_string(value: Optional[Union[date, datetime]] = None) -> str:
    if value is None:
        value = now_local()
    if isinstance(value, datetime):
        value = to_local(value).date()
    return value.strftime("%Y-%m-%d")


def today_string(now: Optional[datetime] = None) -> str:
    return to_local_date_string(now or now_local())


def tomorrow_string(now: Optional[datetime] = None) -> str:
    return to_local_date_string(to_local(now or now_local()) + timedelta(days=1))


def yesterday_string(now: Optional[datetime] = None) -> str:
    return to_local_date_string(to_local(now or now_local()) - timedelta(days=1))


def add_days(value: date, days: int) -> date:
    return value + timedelta(days=days)


def first_day_of_month(year: int, month: int) -> str:
    """First day of month (month is 1-12) as YYYY-MM-DD."""
    return date(year, month, 1).strftime("%Y-%m-%d")


def last_day_of_month(year: int, month: int) -> str:
    return date(year, month, calendar.monthrange(year, month)[1]).strftime("%Y-%m-%d")


def days_difference(first: str, second: str) -> int:
    return (parse_iso_date(first) - parse_iso_date(second)).days


def is_today(value: str, now: Optional[datetime] = None) -> bool:
    return value == today_string(now)


def is_tomorrow(value: str, now: Optional[datetime] = None) -> bool:
    return value == tomorrow_string(now)


def is_yesterday(value: str, now: Optional[datetime] = None) -> bool:
    return value == yesterday_string(now)


def current_hhmm(now: Optional[datetime] = None) -> str:
    return to_local(now or now_local()).strftime("%H:%M")


def to_local_time(value: Optional[str]) -> str:
    """Render a stored time-of-day or ISO timestamp as local HH:MM ('' if unparseable)."""
    if not value:
        return ""
    if _HHMM.match(value):
        return value
    if _HHMMSS.match(value):
        return value[:5]
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return ""
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=ZoneInfo("UTC"))
    return parsed.astimezone(LOCAL_TZ).strftime("%H:%M")


def to_local_datetime(value: Optional[str]) -> str:
    """ISO timestamp -> 'DD/MM/YYYY, HH:MM' in local time."""
    if not value:
        return ""
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return ""
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=ZoneInfo("UTC"))
    return parsed.astimezone(LOCAL_TZ).strftime("%d/%m/%Y, %H:%M")


def format_display_date(value: str) -> str:
    """YYYY-MM-DD -> DD/MM/YYYY."""
    return parse_iso_date(value).strftime("%d/%m/%Y")


def normalize_time(value: Optional[Union[str, time, timedelta]], default: str = "09:00") -> str:
    """Coerce a stored time-of-day (str, time or MySQL timedelta) to HH:MM."""
    if value is None or value == "":
        return default
    if isinstance(value, time):
        return value.strftime("%H:%M")
    if isinstance(value, timedelta):
        total = int(value.total_seconds()) % 86400
        return f"{total // 3600:02d}:{(total % 3600) // 60:02d}"
    if _HHMM.match(value):
        return value
    if _HHMMSS.match(value):
        return value[:5]
    return default


def hhmm_to_minutes(value: str) -> int:
    hours, minutes = value.split(":")[:2]
    return int(hours) * 60 + int(minutes)


def minutes_to_hhmm(total: int) -> str:
    total %= 24 * 60
    return f"{total // 60:02d}:{total % 60:02d}"


def format_elapsed(seconds: int) -> str:
    """Seconds -> HH:MM:SS (hours not wrapped at 24)."""
    seconds = max(int(seconds), 0)
    return f"{seconds // 3600:02d}:{(seconds % 3600) // 60:02d}:{seconds % 60:02d}"
