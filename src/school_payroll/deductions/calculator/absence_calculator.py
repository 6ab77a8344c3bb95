from __future__ import annotations

import logging
from datetime import date
from typing import Sequence

from ...common.datetime_utils import iso, iter_days, weekday_index
from ...common.money import as_number
from ...core.constants import SKIPPED_DAY_OF_MONTH, SUNDAY
from ...core.context import EvaluationContext
from ...core.enums import DeductionKind, LineItemSource
from ...evidence.resolver import EvidenceIndex, PermissionIndex
from ...roster.model import Student, Teacher
from ...roster.timeline import intervals_on_date, is_assigned_on_date
from ...schedules.pattern import describe_schedule_pattern, scheduled_weekdays
from ...waivers.filter import WaiverFilter
from ..model import AbsenceRecord, DeductionInputs, DeductionLineItem, DeductionRequest
from .base import DeductionCalculator

logger = logging.getLogger(__name__)


class AbsenceCalculator(DeductionCalculator):
    """Day-by-day absence scan, one line item per (teacher, student, date).

    Persisted absence records are authoritative: a date that already has one
    is never recomputed, and the record is reported as its own line item
    unless an absence waiver exists for that date.
    """

    kind = DeductionKind.ABSENCE

    def calculate(
        self,
        *,
        teacher: Teacher,
        students: Sequence[Student],
        inputs: DeductionInputs,
        request: DeductionRequest,
        context: EvaluationContext,
    ) -> list[DeductionLineItem]:
        teacher_id = teacher.teacher_id
        waivers = WaiverFilter(inputs.waivers)
        evidence = EvidenceIndex(inputs.evidence, context, teacher_id=teacher_id)
        permissions = PermissionIndex(inputs.permissions)

        records = [
            r for r in inputs.absence_records
            if r.teacher_id == teacher_id and request.start <= r.class_date <= request.end
        ]
        recorded_dates = {r.class_date for r in records}

        items: list[DeductionLineItem] = []
        for record in sorted(records, key=lambda r: (r.class_date, r.record_id)):
            if waivers.has_waiver(teacher_id, record.class_date, DeductionKind.ABSENCE):
                continue
            items.append(self._from_record(teacher, record))

        for day in iter_days(request.start, request.end):
            if day.day == SKIPPED_DAY_OF_MONTH:
                logger.debug("absence: skip %s (day %s)", iso(day), SKIPPED_DAY_OF_MONTH)
                continue
            weekday = weekday_index(day)
            if weekday == SUNDAY and not context.include_sundays:
                continue
            if day in recorded_dates:
                continue

            for student in students:
                item = self._check_student(
                    teacher=teacher,
                    student=student,
                    day=day,
                    weekday=weekday,
                    inputs=inputs,
                    evidence=evidence,
                    permissions=permissions,
                    waivers=waivers,
                )
                if item is not None:
                    items.append(item)

        items.sort(key=lambda i: (i.date, i.source != LineItemSource.DATABASE, i.student_id or ""))
        return items

    def _check_student(
        self,
        *,
        teacher: Teacher,
        student: Student,
        day: date,
        weekday: int,
        inputs: DeductionInputs,
        evidence: EvidenceIndex,
        permissions: PermissionIndex,
        waivers: WaiverFilter,
    ):
        teacher_id = teacher.teacher_id
        if not is_assigned_on_date(teacher_id, student, day):
            return None

        patterns = [student.day_pattern] + [iv.day_pattern for iv in intervals_on_date(student, teacher_id, day)]
        days = scheduled_weekdays(patterns, has_any_evidence=evidence.has_any(student.student_id))
        if weekday not in days:
            return None

        if evidence.has_event(student.student_id, day):
            return None
        if permissions.is_permitted(student.student_id, day):
            return None
        if waivers.is_exempt(teacher_id, day, DeductionKind.ABSENCE, student.name):
            return None

        amount = inputs.rate_table.absence_for(student.package)
        package = student.package or "Unknown"
        return DeductionLineItem(
            teacher_id=teacher_id,
            teacher_name=teacher.name,
            date=day,
            kind=DeductionKind.ABSENCE,
            amount=amount,
            source=LineItemSource.COMPUTED,
            rationale=f"{student.name} ({package}): No meeting link sent - {as_number(amount)}",
            student_id=student.student_id,
            student_name=student.name,
            student_package=package,
            schedule=describe_schedule_pattern(student.day_pattern),
        )

    @staticmethod
    def _from_record(teacher: Teacher, record: AbsenceRecord) -> DeductionLineItem:
        return DeductionLineItem(
            teacher_id=teacher.teacher_id,
            teacher_name=teacher.name,
            date=record.class_date,
            kind=DeductionKind.ABSENCE,
            amount=record.deduction_applied,
            source=LineItemSource.DATABASE,
            rationale="Permitted absence (DB)" if record.permitted else "Unpermitted absence (DB)",
        )
