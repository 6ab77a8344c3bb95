from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class AssignmentInterval:
    """Thực thể miền (domain): Khoảng thời gian giáo viên được phân công dạy học sinh."""

    teacher_id: str
    student_id: str
    start_date: date
    end_date: Optional[date] = None
    day_pattern: Optional[str] = None
    time_slot: Optional[str] = None

    def contains(self, on_date: date) -> bool:
        if on_date < self.start_date:
            return False
        return self.end_date is None or on_date <= self.end_date

    def overlaps(self, start: date, end: date) -> bool:
        if self.start_date > end:
            return False
        return self.end_date is None or self.end_date >= start


@dataclass(frozen=True)
class ReassignmentEvent:
    """Thực thể miền (domain): Lịch sử đổi giáo viên (audit log)."""

    student_id: str
    old_teacher_id: Optional[str]
    new_teacher_id: str
    change_date: date


@dataclass(frozen=True)
class Teacher:
    teacher_id: str
    name: str


@dataclass(frozen=True)
class Student:
    """Thực thể miền (domain): Học sinh cùng lịch học và lịch sử phân công."""

    student_id: str
    name: str
    package: Optional[str] = None
    day_pattern: Optional[str] = None
    time_slot: Optional[str] = None
    assignments: tuple[AssignmentInterval, ...] = field(default=())
    reassignments: tuple[ReassignmentEvent, ...] = field(default=())
