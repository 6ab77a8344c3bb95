from __future__ import annotations

import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional, Sequence

from ...common.datetime_utils import iso, to_24_hour
from ...common.money import as_number, round_half_up
from ...core.context import EvaluationContext
from ...core.enums import DeductionKind, LineItemSource
from ...core.exceptions import ComputationInvariantViolation
from ...evidence.resolver import EvidenceIndex
from ...roster.model import Student, Teacher
from ...roster.timeline import intervals_on_date, is_assigned_on_date
from ...waivers.filter import WaiverFilter
from ..model import DeductionInputs, DeductionLineItem, DeductionRequest
from .base import DeductionCalculator

logger = logging.getLogger(__name__)


def slot_for(student: Student, teacher_id: str, day) -> Optional[str]:
    for interval in intervals_on_date(student, teacher_id, day):
        if interval.time_slot:
            return interval.time_slot
    return student.time_slot


def minutes_late(delta: timedelta) -> int:
    """Whole minutes late; half a minute or more rounds up."""
    return int(round_half_up(Decimal(delta.total_seconds()) / 60))


class LatenessCalculator(DeductionCalculator):
    """Per-event lateness scan over the earliest meeting event per student and day."""

    kind = DeductionKind.LATENESS

    def calculate(
        self,
        *,
        teacher: Teacher,
        students: Sequence[Student],
        inputs: DeductionInputs,
        request: DeductionRequest,
        context: EvaluationContext,
    ) -> list[DeductionLineItem]:
        policy = inputs.lateness_policy
        if policy is None:
            logger.info("lateness: no tiers configured, teacher=%s skipped", teacher.teacher_id)
            return []

        teacher_id = teacher.teacher_id
        waivers = WaiverFilter(inputs.waivers)
        evidence = EvidenceIndex(inputs.evidence, context, teacher_id=teacher_id)
        by_id = {s.student_id: s for s in students}

        items: list[DeductionLineItem] = []
        for day, event in evidence.earliest_per_day():
            if day < request.start or day > request.end:
                continue
            student = by_id.get(event.student_id)
            if student is None:
                continue
            # Untagged events only count while this teacher is the teacher of record.
            if event.teacher_id is None and not is_assigned_on_date(teacher_id, student, day):
                continue

            slot = slot_for(student, teacher_id, day)
            if not slot:
                continue
            if request.time_slots and slot not in request.time_slots:
                continue
            if waivers.is_exempt(teacher_id, day, DeductionKind.LATENESS, student.name):
                continue

            try:
                scheduled = to_24_hour(slot)
            except ComputationInvariantViolation as e:
                logger.warning("lateness: %s; student=%s date=%s skipped", e, student.student_id, iso(day))
                continue

            expected = datetime.combine(day, scheduled)
            delta = context.local_naive(event.sent_at) - expected
            if delta < timedelta(0):
                continue
            minutes = minutes_late(delta)
            if policy.is_excused(minutes):
                continue

            package = student.package or ""
            base = inputs.rate_table.lateness_for(student.package)
            match = policy.match(minutes, base)
            if match is None or match.amount <= 0:
                continue

            items.append(
                DeductionLineItem(
                    teacher_id=teacher_id,
                    teacher_name=teacher.name,
                    date=day,
                    kind=DeductionKind.LATENESS,
                    amount=match.amount,
                    source=LineItemSource.COMPUTED,
                    rationale=f"{minutes} min late, {slot}, {package}",
                    student_id=student.student_id,
                    student_name=student.name,
                    student_package=package,
                    lateness_minutes=minutes,
                    tier=f"Tier {match.index + 1} ({as_number(match.tier.percent)}%) - {package}",
                    time_slot=slot,
                )
            )
        return items
