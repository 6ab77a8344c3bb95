from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date

from ..core.enums import DeductionKind, WaiverScope

_COUNT_PREFIX_RE = re.compile(r"^\d+\s*student\(s\):\s*")


def parse_exempted_names(reason: str | None) -> frozenset[str]:
    """Extract exempted student names from a waiver reason text.

    Format: "<free text> | N student(s): Name (package); Other Name (package)".
    No "|" section means a legacy waiver that covers every student.
    """
    if not reason or "|" not in reason:
        return frozenset()

    details = reason.split("|")[1].strip()
    details = _COUNT_PREFIX_RE.sub("", details)
    names = set()
    for chunk in details.split(";"):
        name = chunk.strip().split("(")[0].strip()
        if name:
            names.add(name)
    return frozenset(names)


@dataclass(frozen=True)
class Waiver:
    """Thực thể miền (domain): Miễn trừ khấu trừ do quản trị viên cấp."""

    teacher_id: str
    date: date
    kind: DeductionKind
    reason: str = ""
    student_names: frozenset[str] = field(default=frozenset())

    @classmethod
    def from_reason(cls, *, teacher_id: str, day: date, kind: DeductionKind, reason: str) -> "Waiver":
        return cls(
            teacher_id=teacher_id,
            date=day,
            kind=kind,
            reason=reason or "",
            student_names=parse_exempted_names(reason),
        )


@dataclass(frozen=True)
class WaiverDecision:
    scope: WaiverScope
    student_names: frozenset[str] = field(default=frozenset())

    def exempts(self, student_name: str | None) -> bool:
        if self.scope == WaiverScope.BLANKET:
            return True
        if self.scope == WaiverScope.NAMED:
            return (student_name or "") in self.student_names
        return False


NO_WAIVER = WaiverDecision(scope=WaiverScope.NONE)
BLANKET_WAIVER = WaiverDecision(scope=WaiverScope.BLANKET)
