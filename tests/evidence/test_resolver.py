from datetime import date, datetime, timezone

from school_payroll.core.context import EvaluationContext
from school_payroll.evidence.model import AttendancePermission, EvidenceEvent
from school_payroll.evidence.resolver import EvidenceIndex, PermissionIndex

CTX = EvaluationContext.create(reference_date=date(2026, 3, 31), timezone="Asia/Riyadh")


def test_earliest_event_per_student_and_day():
    events = [
        EvidenceEvent(student_id="s1", sent_at=datetime(2026, 3, 3, 16, 40)),
        EvidenceEvent(student_id="s1", sent_at=datetime(2026, 3, 3, 16, 5)),
        EvidenceEvent(student_id="s2", sent_at=datetime(2026, 3, 3, 9, 0)),
    ]
    index = EvidenceIndex(events, CTX)

    assert index.earliest("s1", date(2026, 3, 3)).sent_at == datetime(2026, 3, 3, 16, 5)
    assert [e.student_id for _, e in index.earliest_per_day()] == ["s2", "s1"]
    assert len(index.events_on(date(2026, 3, 3))) == 3


def test_aware_timestamps_are_grouped_in_evaluation_timezone():
    # 22:30 UTC is already the next day in Riyadh (UTC+3).
    events = [EvidenceEvent(student_id="s1", sent_at=datetime(2026, 3, 2, 22, 30, tzinfo=timezone.utc))]
    index = EvidenceIndex(events, CTX)

    assert index.has_event("s1", date(2026, 3, 3))
    assert not index.has_event("s1", date(2026, 3, 2))


def test_events_of_other_teachers_are_ignored():
    events = [
        EvidenceEvent(student_id="s1", sent_at=datetime(2026, 3, 3, 16, 0), teacher_id="T2"),
        EvidenceEvent(student_id="s2", sent_at=datetime(2026, 3, 3, 16, 0)),
    ]
    index = EvidenceIndex(events, CTX, teacher_id="T1")

    assert not index.has_any("s1")
    assert index.has_any("s2")


def test_only_permission_status_excuses():
    index = PermissionIndex(
        [
            AttendancePermission(student_id="s1", date=date(2026, 3, 3), status="Permission"),
            AttendancePermission(student_id="s2", date=date(2026, 3, 3), status="absent"),
        ]
    )

    assert index.is_permitted("s1", date(2026, 3, 3))
    assert not index.is_permitted("s2", date(2026, 3, 3))
