# salon/core.py

import re
from datetime import datetime, date, time, timedelta

from .config import SLOT_MINUTES, DEFAULT_COUNTRY_CODE

HHMM_RE = re.compile(r"^\d{2}:\d{2}$")


def overlaps(start_a, end_a, start_b, end_b) -> bool:
    # half-open: touching endpoints do not overlap
    return start_a < end_b and start_b < end_a


def parse_hhmm(value: str) -> time:
    if not HHMM_RE.match(value):
        raise ValueError(f"Invalid time {value!r}, expected HH:MM")
    hours, minutes = (int(p) for p in value.split(":"))
    return time(hours, minutes)


def at_time(day: date, hhmm: str) -> datetime:
    return datetime.combine(day, parse_hhmm(hhmm))


def day_bounds(day: date):
    """[00:00:00.000, 23:59:59.999] of a calendar day."""
    start = datetime.combine(day, time.min)
    end = datetime.combine(day, time(23, 59, 59, 999000))
    return start, end


def week_bounds(week_start: date):
    start = datetime.combine(week_start, time.min)
    return start, start + timedelta(days=7)


def round_up_to_slot(moment: datetime, slot_minutes: int = SLOT_MINUTES) -> datetime:
    """Next grid boundary strictly after `moment`."""
    floor = moment.replace(minute=moment.minute - moment.minute % slot_minutes, second=0, microsecond=0)
    return floor + timedelta(minutes=slot_minutes)


def normalise_phone(raw: str, default_country_code: str = DEFAULT_COUNTRY_CODE) -> str:
    digits = re.sub(r"\D", "", raw)
    if digits.startswith("0"):
        digits = digits[1:]
    if 10 <= len(digits) <= 15:
        return f"+{digits}"
    if 7 <= len(digits) <= 9:
        return f"+{default_country_code}{digits}"
    if digits:
        return f"+{digits}"
    return raw.strip()


def format_range(start: datetime, end: datetime) -> str:
    return f"{start.day}/{start.month} {start:%H:%M}–{end:%H:%M}"


def pagination_meta(total: int, page: int, limit: int) -> dict:
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "totalPages": -(-total // limit) if limit else 0,
        "hasNextPage": page * limit < total,
        "hasPrevPage": page > 1,
    }


def to_local_naive(moment: datetime) -> datetime:
    """Aware datetimes (e.g. a trailing "Z") become naive local wall-clock time."""
    if moment is None or moment.tzinfo is None:
        return moment
    return moment.astimezone().replace(tzinfo=None)
