from __future__ import annotations

from datetime import datetime
from decimal import Decimal

import pytest

from school_payroll.core.enums import SubscriptionStatus
from school_payroll.core.exceptions import ValidationError
from school_payroll.subscriptions.model import Package, Subscription
from school_payroll.subscriptions.service import SubscriptionUpgradeService


class InMemorySubscriptions:
    def __init__(self, subscriptions, packages):
        self._subscriptions = {s.subscription_id: s for s in subscriptions}
        self._packages = {p.package_id: p for p in packages}

    def get_subscription(self, *, subscription_id):
        return self._subscriptions.get(subscription_id)

    def get_package(self, *, package_id):
        return self._packages.get(package_id)


def _repo():
    return InMemorySubscriptions(
        [
            Subscription(
                subscription_id=10,
                student_id="s1",
                package_id=1,
                start_date=datetime(2026, 3, 1),
                end_date=datetime(2026, 3, 31),
                status=SubscriptionStatus.ACTIVE,
                currency="USD",
            )
        ],
        [
            Package(package_id=1, name="Monthly", price=Decimal("100"), duration_months=1, currency="USD"),
            Package(package_id=2, name="Quarter", price=Decimal("300"), duration_months=3, currency="USD"),
        ],
    )


def test_quote_by_id():
    svc = SubscriptionUpgradeService(_repo())
    quote = svc.quote_by_id(subscription_id=10, new_package_id=2, now=datetime(2026, 3, 11, 8, 0))

    assert quote.proration.credit_amount == Decimal("66.67")
    assert quote.new_cycle.start == datetime(2026, 3, 11)
    assert quote.new_cycle.end == datetime(2026, 6, 11, 23, 59, 59, 999999)
    assert quote.to_dict()["proration"]["net_amount"] == 233.33


@pytest.mark.parametrize("subscription_id, package_id", [(99, 2), (10, 99), (10, None), (10, "abc")])
def test_unknown_references_are_validation_errors(subscription_id, package_id):
    svc = SubscriptionUpgradeService(_repo())
    with pytest.raises(ValidationError):
        svc.quote_by_id(subscription_id=subscription_id, new_package_id=package_id, now=datetime(2026, 3, 11))


def _legacy_repo(*, created_at):
    repo = _repo()
    legacy = Subscription(
        subscription_id=11,
        student_id="s2",
        package_id=1,
        start_date=None,
        end_date=datetime(2026, 3, 31),
        status=SubscriptionStatus.ACTIVE,
        currency="USD",
        created_at=created_at,
    )
    return InMemorySubscriptions([legacy], [repo.get_package(package_id=1), repo.get_package(package_id=2)])


def test_missing_start_date_falls_back_to_creation_time():
    svc = SubscriptionUpgradeService(_legacy_repo(created_at=datetime(2026, 3, 1, 10, 0)))
    quote = svc.quote_by_id(subscription_id=11, new_package_id=2, now=datetime(2026, 3, 11, 10, 0))

    assert quote.proration.days_used == 10
    assert quote.proration.days_remaining == 19


def test_subscription_without_any_start_is_rejected():
    svc = SubscriptionUpgradeService(_legacy_repo(created_at=None))
    with pytest.raises(ValidationError):
        svc.quote_by_id(subscription_id=11, new_package_id=2, now=datetime(2026, 3, 11))


def test_inactive_target_package_is_rejected():
    repo = _repo()
    retired = Package(package_id=3, name="Old", price=Decimal("500"), duration_months=6, currency="USD", is_active=False)
    repo._packages[3] = retired
    svc = SubscriptionUpgradeService(repo)

    with pytest.raises(ValidationError):
        svc.quote_by_id(subscription_id=10, new_package_id=3, now=datetime(2026, 3, 11))
