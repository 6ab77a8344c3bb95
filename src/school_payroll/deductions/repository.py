from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..evidence.model import AttendancePermission, EvidenceEvent
from ..roster.model import Student, Teacher
from ..waivers.model import Waiver
from .model import AbsenceRecord
from .rates import LatenessPolicy, RateTable


class DeductionSourceRepository(Protocol):
    """Read-only contract for everything a deduction preview needs."""

    def get_teachers(self, *, school_id: int, teacher_ids: Sequence[str]) -> Sequence[Teacher]:
        raise NotImplementedError

    def get_students_for_teachers(
        self,
        *,
        school_id: int,
        teacher_ids: Sequence[str],
        start: date,
        end: date,
    ) -> Sequence[Student]:
        """Students with an assignment or reassignment touching any of the teachers.

        Each student carries its full assignment intervals and reassignment events.
        """

        raise NotImplementedError

    def get_evidence(self, *, school_id: int, student_ids: Sequence[str]) -> Sequence[EvidenceEvent]:
        """All meeting events of the students, not limited to the date range.

        The schedule fallback needs to know whether a student ever had an event.
        """

        raise NotImplementedError

    def get_permissions(
        self,
        *,
        school_id: int,
        student_ids: Sequence[str],
        start: date,
        end: date,
    ) -> Sequence[AttendancePermission]:
        raise NotImplementedError

    def get_absence_records(
        self,
        *,
        school_id: int,
        teacher_ids: Sequence[str],
        start: date,
        end: date,
    ) -> Sequence[AbsenceRecord]:
        raise NotImplementedError

    def get_waivers(
        self,
        *,
        school_id: int,
        teacher_ids: Sequence[str],
        start: date,
        end: date,
    ) -> Sequence[Waiver]:
        raise NotImplementedError

    def get_rate_table(self, *, school_id: int) -> RateTable:
        raise NotImplementedError

    def get_lateness_policy(self, *, school_id: int) -> Optional[LatenessPolicy]:
        raise NotImplementedError

    def get_include_sundays(self, *, school_id: int) -> Optional[bool]:
        """School-level toggle; None when the school has no setting."""

        raise NotImplementedError
