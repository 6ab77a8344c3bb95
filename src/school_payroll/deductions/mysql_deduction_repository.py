from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional, Sequence

from ..core.enums import DeductionKind
from ..core.exceptions import ComputationInvariantViolation, MissingReferenceWarning
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    as_date,
    as_decimal,
    as_id,
    as_optional_date,
    db_cursor,
    fetchall,
    fetchone,
    in_clause,
    normalize_mysql_time,
)
from ..evidence.model import AttendancePermission, EvidenceEvent
from ..roster.model import AssignmentInterval, ReassignmentEvent, Student, Teacher
from ..waivers.model import Waiver
from .model import AbsenceRecord
from .rates import LatenessPolicy, RateTable
from .repository import DeductionSourceRepository

logger = logging.getLogger(__name__)


class MySQLDeductionSourceRepository(DeductionSourceRepository):
    def __init__(
        self,
        conn_factory: DatabaseConnection,
        *,
        default_absence: Decimal,
        default_lateness: Decimal,
    ):
        self._conn_factory = conn_factory
        self._default_absence = default_absence
        self._default_lateness = default_lateness

    def get_teachers(self, *, school_id: int, teacher_ids: Sequence[str]) -> Sequence[Teacher]:
        if not teacher_ids:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT teacher_id, name
                FROM teachers
                WHERE school_id=%s AND teacher_id IN ({in_clause(teacher_ids)})
                """,
                (int(school_id), *teacher_ids),
            )
            return [Teacher(teacher_id=as_id(r["teacher_id"]), name=r["name"] or "Unknown") for r in fetchall(cur)]

    def get_students_for_teachers(
        self,
        *,
        school_id: int,
        teacher_ids: Sequence[str],
        start: date,
        end: date,
    ) -> Sequence[Student]:
        if not teacher_ids:
            return []
        ids = in_clause(teacher_ids)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT DISTINCT student_id FROM assignments
                WHERE school_id=%s AND teacher_id IN ({ids})
                  AND start_date <= %s AND (end_date IS NULL OR end_date >= %s)
                UNION
                SELECT DISTINCT student_id FROM teacher_change_history
                WHERE school_id=%s
                  AND (old_teacher_id IN ({ids}) OR (new_teacher_id IN ({ids}) AND change_date <= %s))
                """,
                (
                    int(school_id), *teacher_ids, end, start,
                    int(school_id), *teacher_ids, *teacher_ids, datetime.combine(end, time.max),
                ),
            )
            student_ids = sorted({as_id(r["student_id"]) for r in fetchall(cur)} - {None})
            if not student_ids:
                return []

            sids = in_clause(student_ids)
            cur.execute(
                f"""
                SELECT student_id, name, package, day_pattern, time_slot
                FROM students
                WHERE school_id=%s AND student_id IN ({sids})
                """,
                (int(school_id), *student_ids),
            )
            rows = {as_id(r["student_id"]): r for r in fetchall(cur)}

            cur.execute(
                f"""
                SELECT teacher_id, student_id, start_date, end_date, day_pattern, time_slot
                FROM assignments
                WHERE school_id=%s AND student_id IN ({sids})
                ORDER BY start_date ASC
                """,
                (int(school_id), *student_ids),
            )
            intervals: dict[str, list[AssignmentInterval]] = defaultdict(list)
            for r in fetchall(cur):
                try:
                    interval = AssignmentInterval(
                        teacher_id=as_id(r["teacher_id"]),
                        student_id=as_id(r["student_id"]),
                        start_date=as_date(r["start_date"]),
                        end_date=as_optional_date(r.get("end_date")),
                        day_pattern=r.get("day_pattern"),
                        time_slot=normalize_mysql_time(r.get("time_slot")),
                    )
                except ComputationInvariantViolation as e:
                    logger.warning("assignment row skipped: %s", e)
                    continue
                intervals[interval.student_id].append(interval)

            cur.execute(
                f"""
                SELECT student_id, old_teacher_id, new_teacher_id, change_date
                FROM teacher_change_history
                WHERE school_id=%s AND student_id IN ({sids})
                ORDER BY change_date ASC
                """,
                (int(school_id), *student_ids),
            )
            changes: dict[str, list[ReassignmentEvent]] = defaultdict(list)
            for r in fetchall(cur):
                try:
                    event = ReassignmentEvent(
                        student_id=as_id(r["student_id"]),
                        old_teacher_id=as_id(r.get("old_teacher_id")),
                        new_teacher_id=as_id(r["new_teacher_id"]),
                        change_date=as_date(r["change_date"]),
                    )
                except ComputationInvariantViolation as e:
                    logger.warning("teacher change row skipped: %s", e)
                    continue
                changes[event.student_id].append(event)

        students: list[Student] = []
        for sid in student_ids:
            r = rows.get(sid)
            if r is None:
                logger.warning("%s", MissingReferenceWarning(f"Student {sid} not found; skipped"))
                continue
            students.append(
                Student(
                    student_id=sid,
                    name=r["name"] or "",
                    package=r.get("package"),
                    day_pattern=r.get("day_pattern"),
                    time_slot=normalize_mysql_time(r.get("time_slot")),
                    assignments=tuple(intervals.get(sid, [])),
                    reassignments=tuple(changes.get(sid, [])),
                )
            )
        return students

    def get_evidence(self, *, school_id: int, student_ids: Sequence[str]) -> Sequence[EvidenceEvent]:
        if not student_ids:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT student_id, teacher_id, sent_time
                FROM meeting_links
                WHERE school_id=%s AND sent_time IS NOT NULL AND student_id IN ({in_clause(student_ids)})
                ORDER BY sent_time ASC
                """,
                (int(school_id), *student_ids),
            )
            return [
                EvidenceEvent(student_id=as_id(r["student_id"]), sent_at=r["sent_time"], teacher_id=as_id(r.get("teacher_id")))
                for r in fetchall(cur)
                if isinstance(r["sent_time"], datetime)
            ]

    def get_permissions(
        self,
        *,
        school_id: int,
        student_ids: Sequence[str],
        start: date,
        end: date,
    ) -> Sequence[AttendancePermission]:
        if not student_ids:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT student_id, date, attendance_status
                FROM attendance_progress
                WHERE school_id=%s AND date BETWEEN %s AND %s AND student_id IN ({in_clause(student_ids)})
                """,
                (int(school_id), start, end, *student_ids),
            )
            return [
                AttendancePermission(student_id=as_id(r["student_id"]), date=as_date(r["date"]), status=r["attendance_status"] or "")
                for r in fetchall(cur)
            ]

    def get_absence_records(
        self,
        *,
        school_id: int,
        teacher_ids: Sequence[str],
        start: date,
        end: date,
    ) -> Sequence[AbsenceRecord]:
        if not teacher_ids:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT id, teacher_id, class_date, deduction_applied, permitted
                FROM absence_records
                WHERE school_id=%s AND class_date BETWEEN %s AND %s AND teacher_id IN ({in_clause(teacher_ids)})
                ORDER BY class_date ASC
                """,
                (int(school_id), start, end, *teacher_ids),
            )
            return [
                AbsenceRecord(
                    record_id=int(r["id"]),
                    teacher_id=as_id(r["teacher_id"]),
                    class_date=as_date(r["class_date"]),
                    deduction_applied=as_decimal(r["deduction_applied"]),
                    permitted=bool(r.get("permitted")),
                )
                for r in fetchall(cur)
            ]

    def get_waivers(
        self,
        *,
        school_id: int,
        teacher_ids: Sequence[str],
        start: date,
        end: date,
    ) -> Sequence[Waiver]:
        if not teacher_ids:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT teacher_id, deduction_date, deduction_type, reason
                FROM deduction_waivers
                WHERE school_id=%s AND deduction_date BETWEEN %s AND %s AND teacher_id IN ({in_clause(teacher_ids)})
                """,
                (int(school_id), start, end, *teacher_ids),
            )
            out: list[Waiver] = []
            for r in fetchall(cur):
                try:
                    kind = DeductionKind(str(r["deduction_type"]).strip().lower())
                except ValueError:
                    logger.warning("waiver with unknown type %r skipped", r["deduction_type"])
                    continue
                out.append(
                    Waiver.from_reason(
                        teacher_id=as_id(r["teacher_id"]),
                        day=as_date(r["deduction_date"]),
                        kind=kind,
                        reason=r.get("reason") or "",
                    )
                )
            return out

    def get_rate_table(self, *, school_id: int) -> RateTable:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT package_name, absence_base_amount AS absence_amount, lateness_base_amount AS lateness_amount
                FROM package_deductions
                WHERE school_id=%s
                """,
                (int(school_id),),
            )
            rows = fetchall(cur)
        return RateTable.from_rows(rows, default_absence=self._default_absence, default_lateness=self._default_lateness)

    def get_lateness_policy(self, *, school_id: int) -> Optional[LatenessPolicy]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT start_minute, end_minute, deduction_percent AS percent, excused_threshold
                FROM lateness_deduction_configs
                WHERE school_id=%s
                ORDER BY tier ASC, start_minute ASC
                """,
                (int(school_id),),
            )
            rows = fetchall(cur)
        return LatenessPolicy.from_rows(rows)

    def get_include_sundays(self, *, school_id: int) -> Optional[bool]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT value FROM settings WHERE school_id=%s AND `key`='include_sundays_in_salary'",
                (int(school_id),),
            )
            r = fetchone(cur)
        if not r:
            return None
        return str(r["value"]).strip().lower() == "true"
