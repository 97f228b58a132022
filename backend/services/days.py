"""
days.py — Calendar-day helpers.
Progress is matched per calendar day in APP_TIMEZONE: a submitted timestamp
is converted to that zone and its time-of-day is discarded.
"""

from datetime import datetime, date, timezone, timedelta
from zoneinfo import ZoneInfo

from config import APP_TIMEZONE
from errors import InvalidInput


def local_tz():
    if APP_TIMEZONE.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(APP_TIMEZONE)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def local_today(now: datetime | None = None) -> date:
    return (now or utcnow()).astimezone(local_tz()).date()


def hhmm(moment: datetime) -> str:
    """24h HH:MM of a moment in the local zone."""
    return moment.astimezone(local_tz()).strftime("%H:%M")


def parse_day(raw, field: str = "date") -> date:
    """Resolve a date, datetime or ISO-8601 string to a calendar day."""
    if isinstance(raw, datetime):
        moment = raw
    elif isinstance(raw, date):
        return raw
    elif isinstance(raw, str) and raw.strip():
        text = raw.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            if len(text) == 10:
                return date.fromisoformat(text)
            moment = datetime.fromisoformat(text)
        except ValueError:
            raise InvalidInput.for_field(field, "Invalid date format")
    else:
        raise InvalidInput.for_field(field, "Valid date is required")

    if moment.tzinfo is not None:
        moment = moment.astimezone(local_tz())
    return moment.date()


def day_range(start: date, end: date):
    """Inclusive iteration over calendar days."""
    d = start
    while d <= end:
        yield d
        d += timedelta(days=1)
