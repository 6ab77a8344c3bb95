from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Iterable, Optional

from ..common.datetime_utils import iso
from ..core.context import EvaluationContext
from .model import AttendancePermission, EvidenceEvent


class EvidenceIndex:
    """Meeting events grouped by calendar date in the evaluation timezone.

    Only the earliest event per (student, date) is authoritative; later
    events the same day (re-sent links) are ignored for lateness.
    """

    def __init__(
        self,
        events: Iterable[EvidenceEvent],
        context: EvaluationContext,
        *,
        teacher_id: Optional[str] = None,
    ):
        self._context = context
        self._by_date: dict[str, list[EvidenceEvent]] = defaultdict(list)
        self._earliest: dict[tuple[str, str], EvidenceEvent] = {}
        self._students: set[str] = set()

        for event in events:
            if teacher_id is not None and event.teacher_id not in (None, teacher_id):
                continue
            key_date = iso(context.local_date(event.sent_at))
            self._by_date[key_date].append(event)
            self._students.add(event.student_id)

            key = (event.student_id, key_date)
            current = self._earliest.get(key)
            if current is None or self._sort_key(event) < self._sort_key(current):
                self._earliest[key] = event

        for items in self._by_date.values():
            items.sort(key=lambda e: (self._sort_key(e), e.student_id))

    def _sort_key(self, event: EvidenceEvent):
        return self._context.local_naive(event.sent_at)

    def events_on(self, day: date) -> list[EvidenceEvent]:
        return list(self._by_date.get(iso(day), []))

    def has_event(self, student_id: str, day: date) -> bool:
        return (student_id, iso(day)) in self._earliest

    def earliest(self, student_id: str, day: date) -> Optional[EvidenceEvent]:
        return self._earliest.get((student_id, iso(day)))

    def has_any(self, student_id: str) -> bool:
        return student_id in self._students

    def earliest_per_day(self) -> list[tuple[date, EvidenceEvent]]:
        """One (local date, event) pair per (student, date), ordered by date then time."""
        out = [(self._context.local_date(e.sent_at), e) for e in self._earliest.values()]
        out.sort(key=lambda pair: (pair[0], self._sort_key(pair[1]), pair[1].student_id))
        return out


class PermissionIndex:
    def __init__(self, permissions: Iterable[AttendancePermission]):
        self._permitted: set[tuple[str, date]] = {
            (p.student_id, p.date) for p in permissions if p.is_permission
        }

    def is_permitted(self, student_id: str, day: date) -> bool:
        return (student_id, day) in self._permitted
