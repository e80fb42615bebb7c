# compras/utils/dates.py
"""
Timezone policy: timestamps are stored in UTC and every calendar-day
decision (the "today" counter, export filenames, display strings) is made
in one configured zone (``TIMEZONE``), never in the host's locale.
"""
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from flask import current_app, has_app_context

DEFAULT_ZONE = "America/La_Paz"


def get_zone(name=None) -> ZoneInfo:
    if name is None and has_app_context():
        name = current_app.config.get("TIMEZONE")
    return ZoneInfo(name or DEFAULT_ZONE)


def parse_timestamp(value):
    """ISO string or datetime -> aware UTC datetime; naive values are UTC. Bad input -> None."""
    if value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        s = str(value).strip()
        if not s:
            return None
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(s)
        except ValueError:
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def local_date(value, tz) -> date | None:
    dt = parse_timestamp(value)
    return dt.astimezone(tz).date() if dt else None


def today(tz, now=None) -> date:
    now = parse_timestamp(now) if now is not None else datetime.now(timezone.utc)
    return now.astimezone(tz).date()


def is_today(value, tz, now=None) -> bool:
    d = local_date(value, tz)
    return d is not None and d == today(tz, now)


def format_es(value, tz) -> str:
    """es-ES style ``d/m/yyyy, H:MM:SS`` in ``tz``; empty string for missing values."""
    dt = parse_timestamp(value)
    if dt is None:
        return ""
    dt = dt.astimezone(tz)
    return f"{dt.day}/{dt.month}/{dt.year}, {dt.hour}:{dt:%M:%S}"
