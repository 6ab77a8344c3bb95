from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ..common.money import as_number
from ..core.enums import SubscriptionStatus


@dataclass(frozen=True)
class Package:
    """Thực thể miền (domain): Gói học phí theo tháng."""

    package_id: int
    name: str
    price: Decimal
    duration_months: int
    currency: str
    is_active: bool = True


@dataclass(frozen=True)
class Subscription:
    subscription_id: int
    student_id: str
    package_id: int
    start_date: Optional[datetime]
    end_date: datetime
    status: SubscriptionStatus
    currency: str
    cancel_at_period_end: bool = False
    created_at: Optional[datetime] = None

    @property
    def period_start(self) -> Optional[datetime]:
        """Start of the current period; older rows only carry the creation time."""
        return self.start_date or self.created_at


@dataclass(frozen=True)
class ProrationResult:
    """Amounts are rounded to cents; day counts are whole days."""

    credit_amount: Decimal
    net_amount: Decimal
    days_used: int
    days_remaining: int
    total_days: int
    current_monthly_rate: Decimal
    new_monthly_rate: Decimal
    current_daily_rate: Decimal
    new_daily_rate: Decimal

    def to_dict(self) -> dict:
        return {
            "credit_amount": as_number(self.credit_amount),
            "net_amount": as_number(self.net_amount),
            "days_used": self.days_used,
            "days_remaining": self.days_remaining,
            "total_days": self.total_days,
            "current_monthly_rate": as_number(self.current_monthly_rate),
            "new_monthly_rate": as_number(self.new_monthly_rate),
            "current_daily_rate": as_number(self.current_daily_rate),
            "new_daily_rate": as_number(self.new_daily_rate),
        }


@dataclass(frozen=True)
class BillingCycle:
    start: datetime
    end: datetime


@dataclass(frozen=True)
class UpgradeQuote:
    subscription_id: int
    from_package_id: int
    to_package_id: int
    currency: str
    proration: ProrationResult
    new_cycle: BillingCycle

    def to_dict(self) -> dict:
        return {
            "subscription_id": self.subscription_id,
            "from_package_id": self.from_package_id,
            "to_package_id": self.to_package_id,
            "currency": self.currency,
            "proration": self.proration.to_dict(),
            "new_start_date": self.new_cycle.start.isoformat(),
            "new_end_date": self.new_cycle.end.isoformat(),
        }
