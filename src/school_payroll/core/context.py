from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from zoneinfo import ZoneInfo

from .constants import DEFAULT_TIMEZONE


@dataclass(frozen=True)
class EvaluationContext:
    """Explicit evaluation settings threaded through every calculation.

    Replaces reading "today", the server timezone or school settings from ambient state.
    """

    reference_date: date
    timezone: ZoneInfo
    include_sundays: bool = False

    @classmethod
    def create(
        cls,
        *,
        reference_date: date | None = None,
        timezone: str = DEFAULT_TIMEZONE,
        include_sundays: bool = False,
    ) -> "EvaluationContext":
        tz = ZoneInfo(timezone)
        return cls(
            reference_date=reference_date or datetime.now(tz).date(),
            timezone=tz,
            include_sundays=bool(include_sundays),
        )

    def local_date(self, value: datetime) -> date:
        """Calendar date of a timestamp in the evaluation timezone.

        Naive timestamps are taken as already local.
        """
        if value.tzinfo is None:
            return value.date()
        return value.astimezone(self.timezone).date()

    def local_naive(self, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value
        return value.astimezone(self.timezone).replace(tzinfo=None)
