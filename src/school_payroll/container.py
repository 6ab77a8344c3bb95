from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from .core.constants import DEFAULT_ABSENCE_AMOUNT, DEFAULT_LATENESS_AMOUNT, DEFAULT_TIMEZONE
from .database.connection import DBConfig, DatabaseConnection
from .deductions.factory import DeductionCalculatorFactory
from .deductions.mysql_deduction_repository import MySQLDeductionSourceRepository
from .deductions.repository import DeductionSourceRepository
from .deductions.service import DeductionPreviewService
from .subscriptions.mysql_subscription_repository import MySQLSubscriptionRepository
from .subscriptions.repository import SubscriptionRepository
from .subscriptions.service import SubscriptionUpgradeService


@dataclass(frozen=True)
class Container:
    deduction_sources: DeductionSourceRepository
    subscriptions_repo: SubscriptionRepository

    deduction_preview_service: DeductionPreviewService
    subscription_upgrade_service: SubscriptionUpgradeService


def build_services(
    *,
    deduction_sources: DeductionSourceRepository,
    subscriptions_repo: SubscriptionRepository,
    timezone: str = DEFAULT_TIMEZONE,
    include_sundays: bool = False,
) -> Container:
    deduction_preview_service = DeductionPreviewService(
        deduction_sources,
        factory=DeductionCalculatorFactory(),
        timezone=timezone,
        include_sundays=include_sundays,
    )
    subscription_upgrade_service = SubscriptionUpgradeService(subscriptions_repo)

    return Container(
        deduction_sources=deduction_sources,
        subscriptions_repo=subscriptions_repo,
        deduction_preview_service=deduction_preview_service,
        subscription_upgrade_service=subscription_upgrade_service,
    )


def build_container(*, db_config: dict, payroll: dict | None = None) -> Container:
    payroll = payroll or {}
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))

    deduction_sources = MySQLDeductionSourceRepository(
        conn,
        default_absence=Decimal(str(payroll.get("default_absence_amount", DEFAULT_ABSENCE_AMOUNT))),
        default_lateness=Decimal(str(payroll.get("default_lateness_amount", DEFAULT_LATENESS_AMOUNT))),
    )
    subscriptions_repo = MySQLSubscriptionRepository(conn)

    return build_services(
        deduction_sources=deduction_sources,
        subscriptions_repo=subscriptions_repo,
        timezone=str(payroll.get("timezone", DEFAULT_TIMEZONE)),
        include_sundays=bool(payroll.get("include_sundays", False)),
    )
