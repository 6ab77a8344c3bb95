"""Weekly schedule pattern codes ("day packages").

A pattern code is the free-form text stored on a student or an assignment,
e.g. "All days", "MWF", "Monday", "1,3,5" or "Mon, Wed, Fri". Weekdays are
numbered 0=Sunday .. 6=Saturday.
"""

from __future__ import annotations

import re
from typing import Iterable, Optional

from ..core.constants import ALL_WEEKDAYS, FALLBACK_WEEKDAYS

ALIASES: dict[str, frozenset[int]] = {
    "ALL DAYS": ALL_WEEKDAYS,
    "ALLDAYS": ALL_WEEKDAYS,
    "MWF": frozenset({1, 3, 5}),
    "TTS": frozenset({2, 4, 6}),
    "TTH": frozenset({2, 4, 6}),
}

DAY_NAMES: dict[str, int] = {
    "SUNDAY": 0,
    "SUN": 0,
    "MONDAY": 1,
    "MON": 1,
    "TUESDAY": 2,
    "TUE": 2,
    "TUES": 2,
    "WEDNESDAY": 3,
    "WED": 3,
    "WEDNES": 3,
    "THURSDAY": 4,
    "THU": 4,
    "THUR": 4,
    "THURS": 4,
    "FRIDAY": 5,
    "FRI": 5,
    "SATURDAY": 6,
    "SAT": 6,
}

_DIGITS_RE = re.compile(r"\d+")


def parse_schedule_pattern(code: Optional[str]) -> frozenset[int]:
    """Resolve a pattern code to the set of active weekdays.

    Rules, in order: known aliases, a single day name, any digits (as
    weekday numbers 0-6), comma-separated day names. Anything else is an
    empty set; this never raises.
    """
    if not code or not code.strip():
        return frozenset()

    value = code.strip().upper()

    if value in ALIASES:
        return ALIASES[value]

    if value in DAY_NAMES:
        return frozenset({DAY_NAMES[value]})

    digits = _DIGITS_RE.findall(value)
    if digits:
        return frozenset(int(d) for d in digits if 0 <= int(d) <= 6)

    if "," in value:
        days = set()
        for part in value.split(","):
            part = part.strip()
            if part in DAY_NAMES:
                days.add(DAY_NAMES[part])
        return frozenset(days)

    return frozenset()


def scheduled_weekdays(patterns: Iterable[Optional[str]], *, has_any_evidence: bool) -> frozenset[int]:
    """Union of all pattern codes, with the Mon-Fri fallback.

    Records with no usable schedule but with at least one meeting event ever
    are treated as scheduled Monday to Friday; with no events they stay empty.
    """
    days: set[int] = set()
    for code in patterns:
        days |= parse_schedule_pattern(code)
    if not days and has_any_evidence:
        return FALLBACK_WEEKDAYS
    return frozenset(days)


def describe_schedule_pattern(code: Optional[str]) -> str:
    if not code or not code.strip():
        return "Not set"

    value = code.strip().upper()
    if value in ("ALL DAYS", "ALLDAYS"):
        return "All Days"
    if value == "MWF":
        return "Mon, Wed, Fri"
    if value in ("TTS", "TTH"):
        return "Tue, Thu, Sat"
    return code.strip()
