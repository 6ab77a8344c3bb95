from __future__ import annotations

from typing import Optional, Protocol

from .model import Package, Subscription


class SubscriptionRepository(Protocol):
    def get_subscription(self, *, subscription_id: int) -> Optional[Subscription]:
        raise NotImplementedError

    def get_package(self, *, package_id: int) -> Optional[Package]:
        raise NotImplementedError
