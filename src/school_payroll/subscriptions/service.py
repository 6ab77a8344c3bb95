from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from ..common.validators import require_positive_int
from ..core.exceptions import ValidationError
from .model import Package, Subscription, UpgradeQuote
from .proration import calculate_new_cycle, calculate_proration, validate_upgrade
from .repository import SubscriptionRepository

logger = logging.getLogger(__name__)


class SubscriptionUpgradeService:
    """Computes upgrade amounts and the new cycle; never charges or writes.

    Applying a quote (payment provider calls, persistence) belongs to the caller.
    """

    def __init__(self, subscriptions: SubscriptionRepository):
        self._subscriptions = subscriptions

    def quote(
        self,
        *,
        subscription: Subscription,
        current_package: Package,
        new_package: Package,
        now: datetime,
    ) -> UpgradeQuote:
        validate_upgrade(subscription, current_package, new_package)
        start = subscription.period_start
        if start is None:
            raise ValidationError(f"Gói đăng ký {subscription.subscription_id} không có ngày bắt đầu")

        proration = calculate_proration(
            current_price=current_package.price,
            current_duration=current_package.duration_months,
            new_price=new_package.price,
            new_duration=new_package.duration_months,
            original_start=start,
            current_end=subscription.end_date,
            now=now,
        )
        cycle = calculate_new_cycle(now, new_package.duration_months)

        logger.info(
            "upgrade quote subscription=%s %s->%s credit=%s net=%s days_remaining=%s",
            subscription.subscription_id,
            current_package.package_id,
            new_package.package_id,
            proration.credit_amount,
            proration.net_amount,
            proration.days_remaining,
        )
        return UpgradeQuote(
            subscription_id=subscription.subscription_id,
            from_package_id=current_package.package_id,
            to_package_id=new_package.package_id,
            currency=new_package.currency,
            proration=proration,
            new_cycle=cycle,
        )

    def quote_by_id(self, *, subscription_id: int, new_package_id: Optional[int], now: Optional[datetime] = None) -> UpgradeQuote:
        if new_package_id in (None, ""):
            raise ValidationError("Thiếu gói mới (new_package_id)")
        new_package_id = require_positive_int(new_package_id, "Gói mới")

        subscription = self._subscriptions.get_subscription(subscription_id=int(subscription_id))
        if not subscription:
            raise ValidationError(f"Không tìm thấy gói đăng ký {subscription_id}")

        current = self._subscriptions.get_package(package_id=subscription.package_id)
        if not current:
            raise ValidationError(f"Không tìm thấy gói {subscription.package_id}")

        new = self._subscriptions.get_package(package_id=int(new_package_id))
        if not new:
            raise ValidationError(f"Không tìm thấy gói {new_package_id}")

        start = subscription.period_start
        now = now or datetime.now(start.tzinfo if start else None)
        return self.quote(subscription=subscription, current_package=current, new_package=new, now=now)
