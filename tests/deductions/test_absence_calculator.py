from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal

from school_payroll.core.context import EvaluationContext
from school_payroll.core.enums import DeductionKind, LineItemSource
from school_payroll.deductions.calculator.absence_calculator import AbsenceCalculator
from school_payroll.deductions.model import AbsenceRecord, DeductionInputs, DeductionRequest
from school_payroll.deductions.rates import PackageRate, RateTable
from school_payroll.evidence.model import AttendancePermission, EvidenceEvent
from school_payroll.roster.model import AssignmentInterval, ReassignmentEvent, Student, Teacher
from school_payroll.waivers.model import Waiver

TUESDAY = date(2026, 3, 3)
TEACHER = Teacher(teacher_id="T", name="Ustaz T")
RATES = RateTable(rates={"5 days": PackageRate(absence_amount=Decimal("30"), lateness_amount=Decimal("30"))})


def _student(student_id="S", name="Sara", pattern="all days", package="5 days"):
    return Student(
        student_id=student_id,
        name=name,
        package=package,
        day_pattern=pattern,
        assignments=(AssignmentInterval(teacher_id="T", student_id=student_id, start_date=date(2026, 1, 1)),),
    )


def _run(students, *, start=TUESDAY, end=TUESDAY, include_sundays=False, **inputs):
    context = EvaluationContext.create(reference_date=end, include_sundays=include_sundays)
    request = DeductionRequest(start=start, end=end, teacher_ids=("T",), kinds=(DeductionKind.ABSENCE,))
    data = DeductionInputs(teachers=[TEACHER], students=students, rate_table=RATES, **inputs)
    return AbsenceCalculator().calculate(teacher=TEACHER, students=students, inputs=data, request=request, context=context)


def test_missing_lesson_produces_one_item_at_package_rate():
    items = _run([_student()])

    assert len(items) == 1
    assert items[0].amount == Decimal("30")
    assert items[0].student_id == "S"
    assert items[0].source == LineItemSource.COMPUTED
    assert items[0].to_dict()["schedule"] == "All Days"


def test_blanket_waiver_suppresses_the_day():
    waiver = Waiver.from_reason(teacher_id="T", day=TUESDAY, kind=DeductionKind.ABSENCE, reason="Holiday")
    assert _run([_student()], waivers=[waiver]) == []


def test_named_waiver_leaves_other_students_chargeable():
    waiver = Waiver.from_reason(
        teacher_id="T", day=TUESDAY, kind=DeductionKind.ABSENCE, reason="Power cut | 1 student(s): Sara (5 days)"
    )
    items = _run([_student("S", "Sara"), _student("O", "Omar")], waivers=[waiver])

    assert [i.student_name for i in items] == ["Omar"]


def test_unknown_package_uses_default_rate():
    items = _run([_student(package="Mystery")])
    assert items[0].amount == Decimal("25")


def test_evidence_or_permission_means_no_absence():
    evidence = [EvidenceEvent(student_id="S", sent_at=datetime(2026, 3, 3, 18, 0))]
    assert _run([_student()], evidence=evidence) == []

    permissions = [AttendancePermission(student_id="S", date=TUESDAY, status="Permission")]
    assert _run([_student()], permissions=permissions) == []


def test_persisted_record_is_not_double_counted():
    record = AbsenceRecord(record_id=7, teacher_id="T", class_date=TUESDAY, deduction_applied=Decimal("50"))
    items = _run([_student()], absence_records=[record])

    assert len(items) == 1
    assert items[0].source == LineItemSource.DATABASE
    assert items[0].amount == Decimal("50")


def test_persisted_record_is_dropped_when_waived():
    record = AbsenceRecord(record_id=7, teacher_id="T", class_date=TUESDAY, deduction_applied=Decimal("50"))
    waiver = Waiver.from_reason(teacher_id="T", day=TUESDAY, kind=DeductionKind.ABSENCE, reason="ok")

    assert _run([_student()], absence_records=[record], waivers=[waiver]) == []


def test_day_31_and_sundays_are_skipped():
    # 2026-03-29 is a Sunday, 2026-03-31 a Tuesday.
    items = _run([_student()], start=date(2026, 3, 29), end=date(2026, 3, 31))
    assert [i.date for i in items] == [date(2026, 3, 30)]

    items = _run([_student()], start=date(2026, 3, 29), end=date(2026, 3, 31), include_sundays=True)
    assert [i.date for i in items] == [date(2026, 3, 29), date(2026, 3, 30)]


def test_pattern_limits_days():
    # Mon 2 .. Sat 7 March 2026
    items = _run([_student(pattern="MWF")], start=date(2026, 3, 2), end=date(2026, 3, 7))
    assert [i.date.day for i in items] == [2, 4, 6]
    assert {i.schedule for i in items} == {"Mon, Wed, Fri"}


def test_schedule_fallback_requires_some_evidence():
    student = _student(pattern=None)
    assert _run([student], start=date(2026, 3, 2), end=date(2026, 3, 7)) == []

    old_event = [EvidenceEvent(student_id="S", sent_at=datetime(2026, 2, 10, 16, 0))]
    items = _run([student], start=date(2026, 3, 2), end=date(2026, 3, 7), evidence=old_event)
    assert [i.date.day for i in items] == [2, 3, 4, 5, 6]


def test_only_days_under_this_teacher_are_charged():
    student = replace(
        _student(),
        reassignments=(ReassignmentEvent(student_id="S", old_teacher_id="T", new_teacher_id="U", change_date=date(2026, 3, 4)),),
    )
    items = _run([student], start=date(2026, 3, 2), end=date(2026, 3, 5))
    assert [i.date.day for i in items] == [2, 3]


def test_repeated_runs_are_identical():
    students = [_student("S", "Sara"), _student("O", "Omar", pattern="TTS")]
    first = _run(students, start=date(2026, 3, 1), end=date(2026, 3, 31))
    second = _run(students, start=date(2026, 3, 1), end=date(2026, 3, 31))

    assert first == second
    assert [i.to_dict() for i in first] == [i.to_dict() for i in second]
