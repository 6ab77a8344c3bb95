from __future__ import annotations

import calendar
import re
from datetime import date, datetime, time, timedelta
from typing import Iterator

from ..core.exceptions import ComputationInvariantViolation

_MERIDIEM_RE = re.compile(r"^(\d{1,2}):(\d{2})\s?(AM|PM)$", re.IGNORECASE)


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def iso(value: date) -> str:
    return value.strftime("%Y-%m-%d")


def iter_days(start: date, end: date) -> Iterator[date]:
    """Every calendar day in [start, end]."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def weekday_index(value: date) -> int:
    """0=Sunday .. 6=Saturday."""
    return (value.weekday() + 1) % 7


def to_24_hour(slot: str) -> time:
    """Convert a display time slot ("4:30 PM", "16:30", "16:30:00") to a time.

    Raises ComputationInvariantViolation when the slot cannot be read.
    """
    value = (slot or "").strip()
    match = _MERIDIEM_RE.match(value)
    if match:
        hour = int(match.group(1))
        minute = int(match.group(2))
        period = match.group(3).upper()
        if period == "PM" and hour != 12:
            hour += 12
        if period == "AM" and hour == 12:
            hour = 0
    else:
        parts = value.split(":")
        if len(parts) < 2:
            raise ComputationInvariantViolation(f"Invalid time slot: {slot!r}")
        try:
            hour = int(parts[0])
            minute = int(parts[1])
        except ValueError:
            raise ComputationInvariantViolation(f"Invalid time slot: {slot!r}")

    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ComputationInvariantViolation(f"Invalid time slot: {slot!r}")
    return time(hour=hour, minute=minute)


def whole_days_between(start: datetime, end: datetime) -> int:
    return (end - start) // timedelta(days=1)


def add_months(value: datetime, months: int) -> datetime:
    """Calendar month arithmetic; the day is clamped to the target month's length."""
    month_index = value.month - 1 + int(months)
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def start_of_day(value: datetime) -> datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def end_of_day(value: datetime) -> datetime:
    return value.replace(hour=23, minute=59, second=59, microsecond=999999)
