"""Minute-of-day helpers and calendar arithmetic."""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from typing import Iterator, Optional
from zoneinfo import ZoneInfo

from timetrack.common.constants import MAX_YEAR, MIN_YEAR
from timetrack.common.exceptions import ValidationException
from timetrack.config import settings

MINUTES_PER_DAY = 1440


def format_minutes(minutes: Optional[int]) -> str:
    """Render minutes as ``H:MM``; negatives get a leading ``-``."""
    if minutes is None:
        return ""
    sign = "-" if minutes < 0 else ""
    minutes = abs(minutes)
    return f"{sign}{minutes // 60}:{minutes % 60:02d}"


def parse_hhmm(value: str) -> int:
    """Parse ``HH:MM`` into minutes from midnight."""
    hours, _, mins = value.partition(":")
    total = int(hours) * 60 + int(mins or 0)
    if not 0 <= total < MINUTES_PER_DAY:
        raise ValueError(f"time of day out of range: {value!r}")
    return total


def normalize_cross_midnight(start: int, end: int) -> int:
    """Shift *end* into the next day when it lies before *start*."""
    if end < start:
        return end + MINUTES_PER_DAY
    return end


def local_now() -> datetime:
    return datetime.now(ZoneInfo(settings.TIMEZONE))


def today() -> date:
    return local_now().date()


def minutes_since_midnight(moment: datetime) -> int:
    return moment.hour * 60 + moment.minute


# ── Calendar ────────────────────────────────────────────────────────

def validate_year_month(year: int, month: int) -> None:
    errors: dict[str, list[str]] = {}
    if not MIN_YEAR <= year <= MAX_YEAR:
        errors["year"] = [f"must be between {MIN_YEAR} and {MAX_YEAR}"]
    if not 1 <= month <= 12:
        errors["month"] = ["must be between 1 and 12"]
    if errors:
        raise ValidationException(errors)


def month_bounds(year: int, month: int) -> tuple[date, date]:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def iter_days(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def month_days(year: int, month: int) -> list[date]:
    return list(iter_days(*month_bounds(year, month)))


def previous_month(year: int, month: int) -> tuple[int, int]:
    if month == 1:
        return year - 1, 12
    return year, month - 1


def next_month(year: int, month: int) -> tuple[int, int]:
    if month == 12:
        return year + 1, 1
    return year, month + 1


def clamp_day_of_month(year: int, month: int, day: int) -> int:
    return min(day, calendar.monthrange(year, month)[1])


def sunday_based_weekday(day: date) -> int:
    """Weekday with Sunday = 0 … Saturday = 6."""
    return (day.weekday() + 1) % 7
