from __future__ import annotations

from typing import Optional

from ..core.enums import SubscriptionStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_decimal, as_id, db_cursor, fetchone
from .model import Package, Subscription
from .repository import SubscriptionRepository


class MySQLSubscriptionRepository(SubscriptionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_subscription(self, *, subscription_id: int) -> Optional[Subscription]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT ss.id, ss.student_id, ss.package_id, ss.start_date, ss.end_date, ss.status,
                       ss.cancel_at_period_end, ss.created_at, st.classfee_currency
                FROM student_subscriptions ss
                JOIN students st ON st.student_id = ss.student_id
                WHERE ss.id=%s
                """,
                (int(subscription_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return Subscription(
                subscription_id=int(r["id"]),
                student_id=as_id(r["student_id"]),
                package_id=int(r["package_id"]),
                start_date=r["start_date"],
                end_date=r["end_date"],
                status=SubscriptionStatus.parse(r.get("status")),
                currency=str(r.get("classfee_currency") or ""),
                cancel_at_period_end=bool(r.get("cancel_at_period_end")),
                created_at=r.get("created_at"),
            )

    def get_package(self, *, package_id: int) -> Optional[Package]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT id, name, price, duration, currency, is_active
                FROM subscription_packages
                WHERE id=%s
                """,
                (int(package_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return Package(
                package_id=int(r["id"]),
                name=r["name"],
                price=as_decimal(r["price"]),
                duration_months=int(r["duration"]),
                currency=str(r["currency"]),
                is_active=bool(r.get("is_active", 1)),
            )
