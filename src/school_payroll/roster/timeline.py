"""Teacher-of-record reconstruction.

Formal assignment intervals can lag behind reassignments that were only
recorded in the audit trail, so the audit trail wins whenever a student has
any reassignment events; otherwise the intervals are used.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Sequence

from .model import AssignmentInterval, ReassignmentEvent, Student


def _ordered(events: Iterable[ReassignmentEvent]) -> list[ReassignmentEvent]:
    return sorted(events, key=lambda e: e.change_date)


def teacher_from_reassignments(events: Sequence[ReassignmentEvent], on_date: date) -> Optional[str]:
    ordered = _ordered(events)
    if not ordered:
        return None

    if on_date < ordered[0].change_date:
        return ordered[0].old_teacher_id

    current: Optional[str] = None
    for event in ordered:
        if event.change_date > on_date:
            break
        current = event.new_teacher_id
    return current


def teacher_from_intervals(intervals: Sequence[AssignmentInterval], on_date: date) -> Optional[str]:
    # Overlaps: most recent start wins; ties go to the later record.
    winner: Optional[AssignmentInterval] = None
    for interval in intervals:
        if not interval.contains(on_date):
            continue
        if winner is None or interval.start_date >= winner.start_date:
            winner = interval
    return winner.teacher_id if winner else None


def teacher_of_record(student: Student, on_date: date) -> Optional[str]:
    if student.reassignments:
        return teacher_from_reassignments(student.reassignments, on_date)
    return teacher_from_intervals(student.assignments, on_date)


def is_assigned_on_date(teacher_id: str, student: Student, on_date: date) -> bool:
    return teacher_of_record(student, on_date) == teacher_id


def intervals_on_date(student: Student, teacher_id: str, on_date: date) -> list[AssignmentInterval]:
    return [iv for iv in student.assignments if iv.teacher_id == teacher_id and iv.contains(on_date)]


def references_teacher(student: Student, teacher_id: str, start: date, end: date) -> bool:
    for interval in student.assignments:
        if interval.teacher_id == teacher_id and interval.overlaps(start, end):
            return True
    for event in student.reassignments:
        if event.old_teacher_id == teacher_id:
            return True
        if event.new_teacher_id == teacher_id and event.change_date <= end:
            return True
    return False


def students_for_teacher(teacher_id: str, students: Iterable[Student], start: date, end: date) -> list[Student]:
    """Students that may have been under this teacher at some point in [start, end]."""
    return [s for s in students if references_teacher(s, teacher_id, start, end)]
