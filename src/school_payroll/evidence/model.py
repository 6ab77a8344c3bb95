from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.constants import PERMISSION_STATUS


@dataclass(frozen=True)
class EvidenceEvent:
    """Thực thể miền (domain): Bằng chứng buổi học (link họp đã gửi cho học sinh)."""

    student_id: str
    sent_at: datetime
    teacher_id: Optional[str] = None


@dataclass(frozen=True)
class AttendancePermission:
    """Bản ghi điểm danh của học sinh (chỉ trạng thái "Permission" được miễn vắng)."""

    student_id: str
    date: date
    status: str

    @property
    def is_permission(self) -> bool:
        return (self.status or "").strip().lower() == PERMISSION_STATUS
