from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

import pytest

from school_payroll.container import build_services
from school_payroll.core.enums import SubscriptionStatus
from school_payroll.deductions.rates import PackageRate, RateTable
from school_payroll.main import create_app
from school_payroll.roster.model import AssignmentInterval, Student, Teacher
from school_payroll.subscriptions.model import Package, Subscription


class FakeSources:
    def get_teachers(self, *, school_id, teacher_ids):
        return [Teacher(teacher_id="T1", name="Ustaz A")] if "T1" in teacher_ids else []

    def get_students_for_teachers(self, *, school_id, teacher_ids, start, end):
        return [
            Student(
                student_id="s1",
                name="Sara",
                package="5 days",
                day_pattern="1,2,3,4,5",
                time_slot="16:00",
                assignments=(AssignmentInterval(teacher_id="T1", student_id="s1", start_date=date(2026, 1, 1)),),
            )
        ]

    def get_evidence(self, *, school_id, student_ids):
        return []

    def get_permissions(self, *, school_id, student_ids, start, end):
        return []

    def get_absence_records(self, *, school_id, teacher_ids, start, end):
        return []

    def get_waivers(self, *, school_id, teacher_ids, start, end):
        return []

    def get_rate_table(self, *, school_id):
        return RateTable(rates={"5 days": PackageRate(absence_amount=Decimal("30"), lateness_amount=Decimal("30"))})

    def get_lateness_policy(self, *, school_id):
        return None

    def get_include_sundays(self, *, school_id):
        return None


class FakeSubscriptions:
    def get_subscription(self, *, subscription_id):
        if subscription_id != 10:
            return None
        return Subscription(
            subscription_id=10,
            student_id="s1",
            package_id=1,
            start_date=datetime(2026, 3, 1),
            end_date=datetime(2026, 3, 31),
            status=SubscriptionStatus.ACTIVE,
            currency="USD",
        )

    def get_package(self, *, package_id):
        return {
            1: Package(package_id=1, name="Monthly", price=Decimal("100"), duration_months=1, currency="USD"),
            2: Package(package_id=2, name="Quarter", price=Decimal("300"), duration_months=3, currency="USD"),
        }.get(package_id)


@pytest.fixture()
def client(monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    container = build_services(deduction_sources=FakeSources(), subscriptions_repo=FakeSubscriptions())
    app = create_app(container=container)
    return app.test_client()


def test_preview_returns_records_and_summary(client):
    resp = client.post(
        "/api/1/deductions/preview",
        json={"date_range": {"start_date": "2026-03-02", "end_date": "2026-03-03"}, "teacher_ids": ["T1"]},
    )

    assert resp.status_code == 200
    data = resp.get_json()
    assert [r["date"] for r in data["records"]] == ["2026-03-02", "2026-03-03"]
    assert data["records"][0]["details"] == "Sara (5 days): No meeting link sent - 30"
    assert data["summary"]["total_amount"] == 60
    assert data["summary"]["teacher_breakdown"][0]["record_count"] == 2


def test_preview_accepts_a_single_teacher_id(client):
    resp = client.post(
        "/api/1/deductions/preview",
        json={"date_range": {"start_date": "2026-03-02", "end_date": "2026-03-02"}, "teacher_ids": "T1"},
    )

    assert resp.status_code == 200
    data = resp.get_json()
    assert data["warnings"] == []
    assert [r["teacher_id"] for r in data["records"]] == ["T1"]


def test_preview_accepts_adjustment_type(client):
    resp = client.post(
        "/api/1/deductions/preview",
        json={
            "date_range": {"start_date": "2026-03-02", "end_date": "2026-03-02"},
            "teacher_ids": ["T1"],
            "adjustment_type": "waive_lateness",
        },
    )
    assert resp.status_code == 200
    assert resp.get_json()["records"] == []


@pytest.mark.parametrize(
    "body",
    [
        {"teacher_ids": ["T1"]},
        {"date_range": {"start_date": "2026-03-05", "end_date": "2026-03-02"}, "teacher_ids": ["T1"]},
        {"date_range": {"start_date": "03/02/2026", "end_date": "2026-03-02"}, "teacher_ids": ["T1"]},
        {"date_range": {"start_date": "2026-03-02", "end_date": "2026-03-02"}, "teacher_ids": []},
    ],
)
def test_preview_rejects_bad_input(client, body):
    resp = client.post("/api/1/deductions/preview", json=body)
    assert resp.status_code == 400
    assert "error" in resp.get_json()


def test_upgrade_quote(client):
    resp = client.post("/api/subscriptions/10/upgrade/quote", json={"new_package_id": 2})

    assert resp.status_code == 200
    data = resp.get_json()
    assert data["to_package_id"] == 2
    assert data["proration"]["total_days"] == 30


def test_upgrade_quote_unknown_subscription(client):
    resp = client.post("/api/subscriptions/99/upgrade/quote", json={"new_package_id": 2})
    assert resp.status_code == 400
