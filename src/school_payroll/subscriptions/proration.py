"""Proration arithmetic for mid-cycle package upgrades.

Daily rates use a fixed 30-day month. An upgrade starts a fresh billing
cycle on the upgrade day; unused time on the old package becomes a credit
on the same invoice instead of being carried forward.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from ..common.datetime_utils import add_months, end_of_day, start_of_day, whole_days_between
from ..common.money import to_cents
from ..common.validators import require_amount, require_positive_int
from ..core.constants import DAYS_PER_MONTH, UPGRADEABLE_STATUSES
from ..core.exceptions import ValidationError
from .model import BillingCycle, Package, ProrationResult, Subscription


def calculate_proration(
    *,
    current_price: Decimal,
    current_duration: int,
    new_price: Decimal,
    new_duration: int,
    original_start: datetime,
    current_end: datetime,
    now: datetime,
) -> ProrationResult:
    current_price = require_amount(current_price, "Giá gói hiện tại")
    new_price = require_amount(new_price, "Giá gói mới")
    current_duration = require_positive_int(current_duration, "Thời hạn gói hiện tại")
    new_duration = require_positive_int(new_duration, "Thời hạn gói mới")

    current_monthly = current_price / current_duration
    new_monthly = new_price / new_duration
    current_daily = current_monthly / DAYS_PER_MONTH
    new_daily = new_monthly / DAYS_PER_MONTH

    total_days = max(0, whole_days_between(original_start, current_end))
    days_used = max(0, whole_days_between(original_start, now))
    days_remaining = max(0, total_days - days_used)

    credit = current_daily * days_remaining
    # Not clamped: a negative net is reported as-is for audit.
    net = new_price - credit

    return ProrationResult(
        credit_amount=to_cents(credit),
        net_amount=to_cents(net),
        days_used=days_used,
        days_remaining=days_remaining,
        total_days=total_days,
        current_monthly_rate=to_cents(current_monthly),
        new_monthly_rate=to_cents(new_monthly),
        current_daily_rate=to_cents(current_daily),
        new_daily_rate=to_cents(new_daily),
    )


def calculate_new_cycle(now: datetime, new_duration: int) -> BillingCycle:
    start = start_of_day(now)
    end = end_of_day(add_months(start, require_positive_int(new_duration, "Thời hạn gói mới")))
    return BillingCycle(start=start, end=end)


def validate_upgrade(subscription: Subscription, current: Package, new: Package) -> None:
    if subscription.status.value not in UPGRADEABLE_STATUSES:
        raise ValidationError(
            f"Chỉ gói đang hoạt động hoặc dùng thử mới được nâng cấp (trạng thái: {subscription.status.value})"
        )
    if subscription.cancel_at_period_end:
        raise ValidationError("Không thể nâng cấp gói đã lên lịch huỷ")
    if new.package_id == current.package_id:
        raise ValidationError("Bạn đã đăng ký gói này")
    if not new.is_active:
        raise ValidationError(f"Gói {new.name} không còn được cung cấp")
    if new.currency.upper() != subscription.currency.upper() or new.currency.upper() != current.currency.upper():
        raise ValidationError(
            f"Đơn vị tiền tệ của gói ({new.currency}) không khớp với học sinh ({subscription.currency})"
        )
    require_positive_int(current.duration_months, "Thời hạn gói hiện tại")
    require_positive_int(new.duration_months, "Thời hạn gói mới")
    if not (new.price > current.price or new.duration_months > current.duration_months):
        raise ValidationError("Chỉ cho phép nâng cấp: gói mới phải có giá cao hơn hoặc thời hạn dài hơn")
