"""Tests for the dashboard service on top of a customer source."""

from __future__ import annotations

from datetime import date, datetime, timedelta

from factories import NOW, make_contract, make_customer
from lifecrm_app.core.config import (
    AppConfig,
    AuthConfig,
    DatabaseConfig,
    EncryptionConfig,
    LoggingConfig,
)
from lifecrm_app.core.crypto import CryptoService
from lifecrm_app.models.customer import Customer, CustomerCreate
from lifecrm_app.models.insurance import InsuranceCreate
from lifecrm_app.repositories.audit_repository import AuditRepository
from lifecrm_app.repositories.customer_repository import CustomerRepository
from lifecrm_app.repositories.db_pool import ThreadLocalConnection
from lifecrm_app.repositories.schema import initialize_schema
from lifecrm_app.services.customer_service import CustomerService
from lifecrm_app.services.dashboard_service import DashboardService


class FakeSource:
    def __init__(self, customers: list[Customer]):
        self.customers = customers
        self.calls = 0

    def list_customers(self) -> list[Customer]:
        self.calls += 1
        return list(self.customers)


def test_load_reads_the_source_once() -> None:
    source = FakeSource(
        [
            make_customer("1", date(1990, 6, 12)),
            make_customer("2", contracts=[make_contract("a", NOW - timedelta(days=3))]),
        ]
    )

    snapshot = DashboardService(source).load(NOW)

    assert source.calls == 1
    assert snapshot.generated_at == NOW
    assert [r.type for r in snapshot.reminders] == ["payment-overdue", "birthday"]
    assert snapshot.stats.total_customers == 2
    assert snapshot.stats.overdue_payments == 1
    assert snapshot.stats.upcoming_birthdays == 1


def test_every_load_recomputes() -> None:
    source = FakeSource([make_customer("1", date(1990, 6, 12))])
    service = DashboardService(source, clock=lambda: NOW)

    first = service.load()
    source.customers.append(make_customer("2", date(1990, 6, 11)))
    second = service.load()

    assert source.calls == 2
    assert len(first.reminders) == 1
    assert len(second.reminders) == 2
    assert second.stats.upcoming_birthdays == 2


def test_snapshot_serializes_to_plain_data() -> None:
    source = FakeSource([make_customer("1", date(1990, 6, 12), name="Lan")])

    data = DashboardService(source).load(NOW).to_dict()

    assert data["generated_at"] == "2024-06-10T09:30:00"
    assert data["reminders"][0]["customer_name"] == "Lan"
    assert data["reminders"][0]["date"] == "2024-06-12T00:00:00"
    assert data["stats"]["total_customers"] == 1


def test_reminders_for_one_customer() -> None:
    source = FakeSource(
        [
            make_customer("1", date(1990, 6, 12)),
            make_customer("2", date(1990, 6, 13)),
        ]
    )

    reminders = DashboardService(source).reminders_for_customer("2", NOW)

    assert [r.customer_id for r in reminders] == ["2"]


def test_dashboard_over_sqlite_repository(tmp_path) -> None:
    config = AppConfig(
        database=DatabaseConfig(path=str(tmp_path / "test.db")),
        encryption=EncryptionConfig(key_env="LIFECRM_ENCRYPTION_KEY"),
        logging=LoggingConfig(retention_days=1095),
        auth=AuthConfig(admin_email="admin@x.vn", admin_password_env="LIFECRM_ADMIN_PASSWORD"),
    )
    pool = ThreadLocalConnection(config)
    initialize_schema(pool)
    repo = CustomerRepository(pool, CryptoService.from_base64_key(CryptoService.generate_base64_key()))
    customer_service = CustomerService(repo, AuditRepository(pool), clock=lambda: NOW)
    customer_service.create_customer(
        CustomerCreate(
            full_name="Võ Minh",
            phone_number="0903333444",
            date_of_birth=date(1988, 6, 14),
            meeting_date=datetime(2024, 6, 15, 10, 0),
            meeting_notes="Hẹn ký hợp đồng",
            contracts=[
                InsuranceCreate(
                    company="Prudential",
                    contract_number="PRU-77",
                    join_date=date(2024, 1, 20),
                )
            ],
        )
    )

    snapshot = DashboardService(repo).load(NOW)

    assert [(r.type, r.message) for r in snapshot.reminders] == [
        ("birthday", "Còn 4 ngày nữa tới sinh nhật"),
        ("payment-due", "Còn 10 ngày nữa tới hạn đóng phí - Prudential"),
    ]
    assert snapshot.stats.potential_count == 1
    assert snapshot.stats.upcoming_meetings == 1
    assert snapshot.stats.new_customers_this_month == 1
