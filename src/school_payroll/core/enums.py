from __future__ import annotations

from enum import Enum


class DeductionKind(str, Enum):
    """Loại khấu trừ lương giáo viên."""

    ABSENCE = "absence"
    LATENESS = "lateness"


class LineItemSource(str, Enum):
    """Nguồn gốc của một dòng khấu trừ."""

    COMPUTED = "computed"
    DATABASE = "database"


class WaiverScope(str, Enum):
    """Kết quả tra cứu miễn trừ cho một (giáo viên, ngày, loại)."""

    NONE = "none"
    BLANKET = "blanket"
    NAMED = "named"


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    TRIALING = "trialing"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: str | None) -> "SubscriptionStatus":
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.UNKNOWN
