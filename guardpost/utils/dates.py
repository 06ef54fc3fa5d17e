"""
Date helpers shared by the violation list, the breach board and CSV exports.
Stored timestamps are UTC; display strings use the configured local zone.
"""
from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo

from guardpost.core.config import settings


def today_utc() -> date:
    return datetime.now(timezone.utc).date()


def today_in(tz_name: str) -> date:
    return datetime.now(ZoneInfo(tz_name)).date()


def start_of_day_utc(d: date) -> datetime:
    return datetime.combine(d, time.min, tzinfo=timezone.utc)


def end_of_day_utc(d: date) -> datetime:
    return datetime.combine(d, time.max, tzinfo=timezone.utc)


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; treat those as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_local_datetime(value: datetime | None, tz_name: str | None = None) -> str:
    """e.g. 10/19/2026, 2:05:00 PM"""
    if value is None:
        return ""
    local = as_utc(value).astimezone(ZoneInfo(tz_name or settings.DISPLAY_TIMEZONE))
    return f"{local.month}/{local.day}/{local.year}, " + local.strftime("%I:%M:%S %p").lstrip("0")


def format_short_date(value: date | datetime | None) -> str:
    """e.g. Oct 19, 2026 – em dash for missing values."""
    if value is None:
        return "—"
    return value.strftime("%b %d, %Y")


def format_pct(value) -> str:
    if value is None:
        return "—"
    try:
        n = float(value)
    except (TypeError, ValueError):
        return "—"
    s = str(int(n)) if n.is_integer() else f"{n:.1f}"
    if s.endswith(".0"):
        s = s[:-2]
    return f"{s}%"


def file_timestamp(now: datetime | None = None) -> str:
    """ISO timestamp safe for file names (':' and '.' replaced)."""
    stamp = (now or datetime.now(timezone.utc)).isoformat()
    return stamp.replace(":", "-").replace(".", "-")
