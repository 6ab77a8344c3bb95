from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from school_payroll.core.context import EvaluationContext
from school_payroll.core.enums import DeductionKind
from school_payroll.deductions.calculator.lateness_calculator import LatenessCalculator, minutes_late
from school_payroll.deductions.model import DeductionInputs, DeductionRequest
from school_payroll.deductions.rates import LatenessPolicy, LatenessTier, PackageRate, RateTable
from school_payroll.evidence.model import EvidenceEvent
from school_payroll.roster.model import AssignmentInterval, Student, Teacher
from school_payroll.waivers.model import Waiver

DAY = date(2026, 3, 3)
TEACHER = Teacher(teacher_id="T", name="Ustaz T")
RATES = RateTable(rates={"5 days": PackageRate(absence_amount=Decimal("30"), lateness_amount=Decimal("30"))})
POLICY = LatenessPolicy(
    excused_threshold_minutes=5,
    tiers=(
        LatenessTier(start_minute=16, end_minute=30, percent=Decimal("100")),
        LatenessTier(start_minute=6, end_minute=15, percent=Decimal("50")),
    ),
)


def _student(student_id="S", name="Sara", slot="4:00 PM"):
    return Student(
        student_id=student_id,
        name=name,
        package="5 days",
        day_pattern="all days",
        time_slot=slot,
        assignments=(AssignmentInterval(teacher_id="T", student_id=student_id, start_date=date(2026, 1, 1)),),
    )


def _run(students, events, *, policy=POLICY, time_slots=(), **inputs):
    context = EvaluationContext.create(reference_date=DAY)
    request = DeductionRequest(
        start=DAY, end=DAY, teacher_ids=("T",), kinds=(DeductionKind.LATENESS,), time_slots=tuple(time_slots)
    )
    data = DeductionInputs(
        teachers=[TEACHER], students=students, evidence=events, rate_table=RATES, lateness_policy=policy, **inputs
    )
    return LatenessCalculator().calculate(teacher=TEACHER, students=students, inputs=data, request=request, context=context)


def _at(hour, minute, second=0):
    return EvidenceEvent(student_id="S", sent_at=datetime(2026, 3, 3, hour, minute, second))


def test_twelve_minutes_late_is_half_the_base():
    items = _run([_student()], [_at(16, 12)])

    assert len(items) == 1
    assert items[0].amount == Decimal("15")
    assert items[0].lateness_minutes == 12
    assert items[0].tier == "Tier 1 (50%) - 5 days"


def test_threshold_is_not_deducted_and_tier_end_is_inclusive():
    assert _run([_student()], [_at(16, 5)]) == []
    assert _run([_student()], [_at(16, 15)])[0].amount == Decimal("15")
    assert _run([_student()], [_at(16, 16)])[0].amount == Decimal("30")


def test_partial_minutes_round_to_nearest_minute():
    items = _run([_student()], [_at(16, 5, 40)])
    assert len(items) == 1
    assert items[0].lateness_minutes == 6
    assert items[0].amount == Decimal("15")

    assert _run([_student()], [_at(16, 5, 20)]) == []
    assert _run([_student()], [_at(16, 5, 30)])[0].lateness_minutes == 6


def test_minutes_late_rounds_half_up():
    assert minutes_late(timedelta(minutes=5, seconds=29)) == 5
    assert minutes_late(timedelta(minutes=5, seconds=30)) == 6
    assert minutes_late(timedelta(seconds=10)) == 0


def test_no_matching_tier_means_no_item():
    assert _run([_student()], [_at(16, 45)]) == []


def test_early_arrival_is_ignored():
    assert _run([_student()], [_at(15, 50)]) == []


def test_only_earliest_event_of_the_day_counts():
    assert _run([_student()], [_at(16, 40), _at(16, 2)]) == []


def test_24_hour_slot_and_aware_timestamp():
    # 13:20 UTC == 16:20 Asia/Riyadh
    event = EvidenceEvent(student_id="S", sent_at=datetime(2026, 3, 3, 13, 20, tzinfo=timezone.utc))
    items = _run([_student(slot="16:00")], [event])
    assert items[0].lateness_minutes == 20
    assert items[0].amount == Decimal("30")


def test_lateness_waiver_applies():
    waiver = Waiver.from_reason(teacher_id="T", day=DAY, kind=DeductionKind.LATENESS, reason="Server down")
    assert _run([_student()], [_at(16, 12)], waivers=[waiver]) == []


def test_absence_waiver_does_not_cover_lateness():
    waiver = Waiver.from_reason(teacher_id="T", day=DAY, kind=DeductionKind.ABSENCE, reason="Server down")
    assert len(_run([_student()], [_at(16, 12)], waivers=[waiver])) == 1


def test_time_slot_filter():
    assert _run([_student()], [_at(16, 12)], time_slots=["5:00 PM"]) == []
    assert len(_run([_student()], [_at(16, 12)], time_slots=["4:00 PM"])) == 1


def test_students_without_slot_or_policy_are_skipped():
    assert _run([_student(slot=None)], [_at(16, 12)]) == []
    assert _run([_student()], [_at(16, 12)], policy=None) == []


def test_unreadable_slot_is_skipped():
    assert _run([_student(slot="after lunch")], [_at(16, 12)]) == []
