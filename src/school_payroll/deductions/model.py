from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from ..common.datetime_utils import iso
from ..common.money import as_number
from ..core.enums import DeductionKind, LineItemSource
from ..evidence.model import AttendancePermission, EvidenceEvent
from ..roster.model import Student, Teacher
from ..waivers.model import Waiver
from .rates import LatenessPolicy, RateTable


@dataclass(frozen=True)
class AbsenceRecord:
    """Bản ghi vắng mặt đã lưu (ưu tiên hơn kết quả tính toán)."""

    record_id: int
    teacher_id: str
    class_date: date
    deduction_applied: Decimal
    permitted: bool = False


@dataclass(frozen=True)
class DeductionRequest:
    start: date
    end: date
    teacher_ids: tuple[str, ...]
    kinds: tuple[DeductionKind, ...] = (DeductionKind.ABSENCE, DeductionKind.LATENESS)
    time_slots: tuple[str, ...] = ()


@dataclass(frozen=True)
class DeductionInputs:
    """Everything a calculator reads, pre-fetched by the caller."""

    teachers: Sequence[Teacher]
    students: Sequence[Student]
    evidence: Sequence[EvidenceEvent] = ()
    permissions: Sequence[AttendancePermission] = ()
    absence_records: Sequence[AbsenceRecord] = ()
    waivers: Sequence[Waiver] = ()
    rate_table: RateTable = field(default_factory=RateTable)
    lateness_policy: Optional[LatenessPolicy] = None


@dataclass(frozen=True)
class DeductionLineItem:
    """Một dòng khấu trừ (không lưu vào CSDL ở bước xem trước)."""

    teacher_id: str
    teacher_name: str
    date: date
    kind: DeductionKind
    amount: Decimal
    source: LineItemSource
    rationale: str
    student_id: Optional[str] = None
    student_name: Optional[str] = None
    student_package: Optional[str] = None
    lateness_minutes: Optional[int] = None
    tier: Optional[str] = None
    time_slot: Optional[str] = None
    schedule: Optional[str] = None

    @property
    def key(self) -> str:
        """Idempotency key for a later upsert: (teacher, student, date, kind)."""
        return f"{self.kind.value}:{self.teacher_id}:{self.student_id or '-'}:{iso(self.date)}"

    def to_dict(self) -> dict:
        return {
            "id": self.key,
            "teacher_id": self.teacher_id,
            "teacher_name": self.teacher_name,
            "student_id": self.student_id,
            "student_name": self.student_name,
            "student_package": self.student_package,
            "date": iso(self.date),
            "type": self.kind.value,
            "deduction": as_number(self.amount),
            "source": self.source.value,
            "details": self.rationale,
            "lateness_minutes": self.lateness_minutes,
            "tier": self.tier,
            "time_slot": self.time_slot,
            "schedule": self.schedule,
        }


@dataclass(frozen=True)
class TeacherBreakdown:
    teacher_id: str
    teacher_name: str
    record_count: int
    total_deduction: Decimal


@dataclass(frozen=True)
class DeductionSummary:
    total_amount: Decimal
    total_records: int
    per_teacher: tuple[TeacherBreakdown, ...]
    per_kind: dict[DeductionKind, Decimal]

    @property
    def total_teachers(self) -> int:
        return len(self.per_teacher)

    def to_dict(self) -> dict:
        return {
            "total_records": self.total_records,
            "total_teachers": self.total_teachers,
            "total_amount": as_number(self.total_amount),
            "total_absence_amount": as_number(self.per_kind.get(DeductionKind.ABSENCE, Decimal(0))),
            "total_lateness_amount": as_number(self.per_kind.get(DeductionKind.LATENESS, Decimal(0))),
            "teacher_breakdown": [
                {
                    "teacher_id": t.teacher_id,
                    "teacher_name": t.teacher_name,
                    "record_count": t.record_count,
                    "total_deduction": as_number(t.total_deduction),
                }
                for t in self.per_teacher
            ],
        }


@dataclass(frozen=True)
class DeductionPreview:
    items: tuple[DeductionLineItem, ...]
    summary: DeductionSummary
    warnings: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "records": [i.to_dict() for i in self.items],
            "summary": self.summary.to_dict(),
            "warnings": list(self.warnings),
        }
