from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Iterable, Optional

from ..core.enums import DeductionKind, WaiverScope
from .model import BLANKET_WAIVER, NO_WAIVER, Waiver, WaiverDecision


class WaiverFilter:
    """Answers whether a (teacher, date[, student]) instance is exempted.

    Student names are matched exactly (case-sensitive) against the display name.
    """

    def __init__(self, waivers: Iterable[Waiver]):
        grouped: dict[tuple[str, date, DeductionKind], list[Waiver]] = defaultdict(list)
        for w in waivers:
            grouped[(w.teacher_id, w.date, DeductionKind(w.kind))].append(w)

        self._decisions: dict[tuple[str, date, DeductionKind], WaiverDecision] = {}
        for key, items in grouped.items():
            if any(not w.student_names for w in items):
                self._decisions[key] = BLANKET_WAIVER
                continue
            names: set[str] = set()
            for w in items:
                names |= w.student_names
            self._decisions[key] = WaiverDecision(scope=WaiverScope.NAMED, student_names=frozenset(names))

    def decide(self, teacher_id: str, day: date, kind: DeductionKind) -> WaiverDecision:
        return self._decisions.get((teacher_id, day, kind), NO_WAIVER)

    def has_waiver(self, teacher_id: str, day: date, kind: DeductionKind) -> bool:
        return self.decide(teacher_id, day, kind).scope != WaiverScope.NONE

    def is_exempt(
        self,
        teacher_id: str,
        day: date,
        kind: DeductionKind,
        student_name: Optional[str] = None,
    ) -> bool:
        return self.decide(teacher_id, day, kind).exempts(student_name)
