from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from ..common.datetime_utils import iso
from ..common.validators import require_date_range, require_ids
from ..core.constants import DEFAULT_TIMEZONE
from ..core.context import EvaluationContext
from ..core.enums import DeductionKind
from ..core.exceptions import MissingReferenceWarning, ValidationError
from ..roster.timeline import students_for_teacher
from .factory import DeductionCalculatorFactory
from .model import (
    DeductionInputs,
    DeductionLineItem,
    DeductionPreview,
    DeductionRequest,
    DeductionSummary,
    TeacherBreakdown,
)
from .repository import DeductionSourceRepository

logger = logging.getLogger(__name__)

_KIND_ALIASES = {
    "absence": DeductionKind.ABSENCE,
    "waive_absence": DeductionKind.ABSENCE,
    "lateness": DeductionKind.LATENESS,
    "waive_lateness": DeductionKind.LATENESS,
}


def parse_kinds(values: Optional[Iterable[str]]) -> tuple[DeductionKind, ...]:
    if not values:
        return (DeductionKind.ABSENCE, DeductionKind.LATENESS)
    out: list[DeductionKind] = []
    for v in values:
        kind = _KIND_ALIASES.get(str(v).strip().lower())
        if kind is None:
            raise ValidationError(f"Loại khấu trừ không hợp lệ: {v}")
        if kind not in out:
            out.append(kind)
    return tuple(out)


def summarize(items: Sequence[DeductionLineItem], teacher_ids: Sequence[str]) -> DeductionSummary:
    per_kind: dict[DeductionKind, Decimal] = {k: Decimal(0) for k in DeductionKind}
    per_teacher: dict[str, list[DeductionLineItem]] = defaultdict(list)
    total = Decimal(0)
    for item in items:
        total += item.amount
        per_kind[item.kind] += item.amount
        per_teacher[item.teacher_id].append(item)

    breakdown = []
    for tid in teacher_ids:
        rows = per_teacher.get(tid)
        if not rows:
            continue
        breakdown.append(
            TeacherBreakdown(
                teacher_id=tid,
                teacher_name=rows[0].teacher_name,
                record_count=len(rows),
                total_deduction=sum((r.amount for r in rows), Decimal(0)),
            )
        )

    return DeductionSummary(
        total_amount=total,
        total_records=len(items),
        per_teacher=tuple(breakdown),
        per_kind=per_kind,
    )


class DeductionPreviewService:
    """Builds an itemized, unpersisted absence/lateness deduction preview.

    Read-only: nothing here writes, so concurrent previews for the same
    teacher and range are safe. Persisting accepted items is the caller's job.
    """

    def __init__(
        self,
        sources: DeductionSourceRepository,
        *,
        factory: Optional[DeductionCalculatorFactory] = None,
        timezone: str = DEFAULT_TIMEZONE,
        include_sundays: bool = False,
    ):
        self._sources = sources
        self._factory = factory or DeductionCalculatorFactory()
        self._timezone = timezone
        self._include_sundays = bool(include_sundays)

    def build_request(
        self,
        *,
        start: Optional[date],
        end: Optional[date],
        teacher_ids: Optional[Iterable[str]],
        kinds: Optional[Iterable[str]] = None,
        time_slots: Optional[Iterable[str]] = None,
    ) -> DeductionRequest:
        start, end = require_date_range(start, end)
        ids = require_ids(teacher_ids, "giáo viên")
        slots = tuple(s.strip() for s in (time_slots or []) if s and s.strip())
        return DeductionRequest(start=start, end=end, teacher_ids=tuple(ids), kinds=parse_kinds(kinds), time_slots=slots)

    def load_inputs(self, *, school_id: int, request: DeductionRequest) -> DeductionInputs:
        teacher_ids = list(request.teacher_ids)
        students = self._sources.get_students_for_teachers(
            school_id=school_id, teacher_ids=teacher_ids, start=request.start, end=request.end
        )
        student_ids = [s.student_id for s in students]
        return DeductionInputs(
            teachers=self._sources.get_teachers(school_id=school_id, teacher_ids=teacher_ids),
            students=students,
            evidence=self._sources.get_evidence(school_id=school_id, student_ids=student_ids),
            permissions=self._sources.get_permissions(
                school_id=school_id, student_ids=student_ids, start=request.start, end=request.end
            ),
            absence_records=self._sources.get_absence_records(
                school_id=school_id, teacher_ids=teacher_ids, start=request.start, end=request.end
            ),
            waivers=self._sources.get_waivers(
                school_id=school_id, teacher_ids=teacher_ids, start=request.start, end=request.end
            ),
            rate_table=self._sources.get_rate_table(school_id=school_id),
            lateness_policy=self._sources.get_lateness_policy(school_id=school_id),
        )

    def context_for(self, *, school_id: int, reference_date: Optional[date] = None) -> EvaluationContext:
        include_sundays = self._sources.get_include_sundays(school_id=school_id)
        if include_sundays is None:
            include_sundays = self._include_sundays
        return EvaluationContext.create(
            reference_date=reference_date,
            timezone=self._timezone,
            include_sundays=include_sundays,
        )

    def preview(
        self,
        *,
        school_id: int,
        start: Optional[date],
        end: Optional[date],
        teacher_ids: Optional[Iterable[str]],
        kinds: Optional[Iterable[str]] = None,
        time_slots: Optional[Iterable[str]] = None,
        reference_date: Optional[date] = None,
    ) -> DeductionPreview:
        request = self.build_request(start=start, end=end, teacher_ids=teacher_ids, kinds=kinds, time_slots=time_slots)
        context = self.context_for(school_id=school_id, reference_date=reference_date)
        inputs = self.load_inputs(school_id=school_id, request=request)
        preview = self.compute(request=request, inputs=inputs, context=context)
        logger.info(
            "deduction preview school=%s range=%s..%s teachers=%d records=%d total=%s",
            school_id,
            iso(request.start),
            iso(request.end),
            len(request.teacher_ids),
            preview.summary.total_records,
            preview.summary.total_amount,
        )
        return preview

    def compute(
        self,
        *,
        request: DeductionRequest,
        inputs: DeductionInputs,
        context: EvaluationContext,
    ) -> DeductionPreview:
        teachers = {t.teacher_id: t for t in inputs.teachers}
        warnings: list[MissingReferenceWarning] = []
        items: list[DeductionLineItem] = []

        for teacher_id in request.teacher_ids:
            teacher = teachers.get(teacher_id)
            if teacher is None:
                warning = MissingReferenceWarning(f"Teacher {teacher_id} not found; skipped")
                logger.warning("%s", warning)
                warnings.append(warning)
                continue

            students = students_for_teacher(teacher_id, inputs.students, request.start, request.end)
            for kind in request.kinds:
                calculator = self._factory.for_kind(kind)
                items.extend(
                    calculator.calculate(
                        teacher=teacher,
                        students=students,
                        inputs=inputs,
                        request=request,
                        context=context,
                    )
                )

        return DeductionPreview(
            items=tuple(items),
            summary=summarize(items, request.teacher_ids),
            warnings=tuple(str(w) for w in warnings),
        )
