from __future__ import annotations

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

from ..core.exceptions import ValidationError


def require_date_range(start: date | None, end: date | None) -> tuple[date, date]:
    if start is None or end is None:
        raise ValidationError("Thiếu khoảng thời gian (ngày bắt đầu và ngày kết thúc)")
    if start > end:
        raise ValidationError("Ngày bắt đầu phải <= ngày kết thúc")
    return start, end


def require_ids(values: Iterable[Any] | str | int | None, field_name: str) -> list[str]:
    """Normalize ids to unique strings, keeping request order.

    A single id (string or number) is accepted as a one-element list.
    """
    if isinstance(values, (str, int)):
        values = [values]
    out: list[str] = []
    for v in values or []:
        s = str(v).strip()
        if s and s not in out:
            out.append(s)
    if not out:
        raise ValidationError(f"Cần ít nhất một {field_name}")
    return out


def require_amount(value: Any, field_name: str) -> Decimal:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field_name} không hợp lệ")
    if not amount.is_finite() or amount < 0:
        raise ValidationError(f"{field_name} không hợp lệ")
    return amount


def require_positive_int(value: Any, field_name: str) -> int:
    try:
        n = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} không hợp lệ")
    if n <= 0:
        raise ValidationError(f"{field_name} phải lớn hơn 0")
    return n
