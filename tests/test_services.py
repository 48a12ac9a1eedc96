"""Integration-like tests for the customer service on a real SQLite file."""

from __future__ import annotations

import json
import threading
from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from lifecrm_app.core.config import (
    AppConfig,
    AuthConfig,
    DatabaseConfig,
    EncryptionConfig,
    LoggingConfig,
)
from lifecrm_app.core.crypto import CryptoService
from lifecrm_app.models.customer import Address, CustomerCreate
from lifecrm_app.models.insurance import InsuranceCreate
from lifecrm_app.models.user import User
from lifecrm_app.repositories.audit_repository import AuditRepository
from lifecrm_app.repositories.customer_repository import CustomerRepository
from lifecrm_app.repositories.db_pool import ThreadLocalConnection
from lifecrm_app.repositories.schema import initialize_schema
from lifecrm_app.services.customer_service import CustomerService

NOW = datetime(2024, 6, 10, 9, 30)
ADMIN = User(id="u-admin", email="admin@x.vn", full_name="Admin", role="Admin", created_at=NOW)
STAFF = User(id="u-staff", email="staff@x.vn", full_name="Staff", role="Staff", created_at=NOW)


def build_services(tmp_path, clock=lambda: NOW):
    config = AppConfig(
        database=DatabaseConfig(path=str(tmp_path / "test.db")),
        encryption=EncryptionConfig(key_env="LIFECRM_ENCRYPTION_KEY"),
        logging=LoggingConfig(retention_days=1095),
        auth=AuthConfig(admin_email="admin@x.vn", admin_password_env="LIFECRM_ADMIN_PASSWORD"),
    )
    pool = ThreadLocalConnection(config)
    initialize_schema(pool)

    crypto = CryptoService.from_base64_key(CryptoService.generate_base64_key())
    audit_repo = AuditRepository(pool)
    customer_repo = CustomerRepository(pool, crypto)
    customer_service = CustomerService(customer_repo, audit_repo, clock=clock)
    return customer_service, audit_repo, pool


def make_payload(phone: str = "0901234567", **overrides) -> CustomerCreate:
    values = dict(
        full_name="Nguyễn Văn An",
        phone_number=phone,
        date_of_birth=date(1990, 6, 12),
        classification="Signed",
        address=Address(hamlet="Ấp 3", commune="Tân Phú", district="Quận 7", province="TP.HCM"),
        occupation="Kỹ sư",
        financial_status="Thu nhập 30 triệu",
        family_info="Có 2 con",
        contracts=[
            InsuranceCreate(
                company="Prudential",
                contract_number="PRU-001",
                join_date=date(2024, 1, 20),
                payment_frequency="month",
                premium_amount=Decimal("1500000"),
            )
        ],
    )
    values.update(overrides)
    return CustomerCreate(**values)


def test_customer_crud_round_trip(tmp_path) -> None:
    customer_service, audit_repo, _ = build_services(tmp_path)

    customer_id = customer_service.create_customer(make_payload("090 123 4567"), ADMIN)
    customer = customer_service.get_customer(customer_id)

    assert customer.phone_number == "0901234567"
    assert customer.date_of_birth == date(1990, 6, 12)
    assert customer.financial_status == "Thu nhập 30 triệu"
    assert customer.address.display() == "Ấp 3, Tân Phú, Quận 7, TP.HCM"
    assert customer.created_by == "u-admin"
    assert customer.created_at == NOW
    [contract] = customer.insurance_contracts
    assert contract.next_payment_date == datetime(2024, 6, 20)
    assert contract.premium_amount == Decimal("1500000")

    customer_service.update_customer(
        customer_id,
        make_payload(classification="Potential", occupation="Giáo viên", contracts=[]),
        ADMIN,
    )
    updated = customer_service.get_customer(customer_id)
    assert updated.classification == "Potential"
    assert updated.occupation == "Giáo viên"
    assert len(updated.insurance_contracts) == 1

    customer_service.delete_customer(customer_id, ADMIN)
    with pytest.raises(ValueError, match="Không tìm thấy khách hàng"):
        customer_service.get_customer(customer_id)

    actions = [log["action"] for log in audit_repo.list_logs(entity="customer", entity_id=customer_id)]
    assert actions == ["DELETE", "UPDATE", "CREATE"]


def test_phone_is_encrypted_at_rest_and_masked_in_audit(tmp_path) -> None:
    customer_service, audit_repo, pool = build_services(tmp_path)

    customer_id = customer_service.create_customer(make_payload(), ADMIN)

    row = pool.fetchone("SELECT phone_encrypted FROM customers WHERE id = ?", (customer_id,))
    assert b"0901234567" not in bytes(row["phone_encrypted"])
    detail = json.loads(audit_repo.list_logs(entity="customer")[0]["detail"])
    assert detail["after"]["phone_number"] == "*******567"


def test_duplicate_phone_is_rejected(tmp_path) -> None:
    customer_service, _, _ = build_services(tmp_path)
    customer_service.create_customer(make_payload(), ADMIN)

    assert customer_service.phone_number_exists("090.123.4567")
    with pytest.raises(ValueError, match="Số điện thoại này đã tồn tại"):
        customer_service.create_customer(
            make_payload("0901-234-567", contracts=[]),
            ADMIN,
        )


def test_update_may_keep_own_phone_number(tmp_path) -> None:
    customer_service, _, _ = build_services(tmp_path)
    customer_id = customer_service.create_customer(make_payload(), ADMIN)
    other_id = customer_service.create_customer(make_payload("0911111111", contracts=[]), ADMIN)

    customer_service.update_customer(customer_id, make_payload(contracts=[]), ADMIN)

    with pytest.raises(ValueError, match="Số điện thoại này đã tồn tại"):
        customer_service.update_customer(other_id, make_payload(contracts=[]), ADMIN)


def test_duplicate_contract_number_is_rejected(tmp_path) -> None:
    customer_service, _, _ = build_services(tmp_path)
    customer_id = customer_service.create_customer(make_payload(), ADMIN)

    assert customer_service.contract_number_exists("PRU-001")
    assert not customer_service.contract_number_exists("PRU-001", exclude_customer_id=customer_id)
    with pytest.raises(ValueError, match="Số hợp đồng này đã tồn tại trong hệ thống"):
        customer_service.create_customer(make_payload("0911111111"), ADMIN)

    twice = InsuranceCreate(company="AIA", contract_number="AIA-9", join_date=date(2024, 1, 1))
    with pytest.raises(ValueError, match="đã được thêm vào danh sách"):
        customer_service.create_customer(
            make_payload("0922222222", contracts=[twice, twice]),
            ADMIN,
        )
    assert len(customer_service.list_customers()) == 1


def test_required_fields(tmp_path) -> None:
    customer_service, _, _ = build_services(tmp_path)

    with pytest.raises(ValueError, match="Vui lòng nhập họ tên"):
        customer_service.create_customer(make_payload(full_name="  "), ADMIN)
    with pytest.raises(ValueError, match="Vui lòng nhập số điện thoại"):
        customer_service.create_customer(make_payload(phone=""), ADMIN)
    with pytest.raises(ValueError, match="Số điện thoại không hợp lệ"):
        customer_service.create_customer(make_payload(phone="12ab"), ADMIN)
    with pytest.raises(ValueError, match="Phân loại"):
        customer_service.create_customer(make_payload(classification="VIP"), ADMIN)


def test_search_by_name_phone_and_classification(tmp_path) -> None:
    customer_service, _, _ = build_services(tmp_path)
    customer_service.create_customer(make_payload(), ADMIN)
    customer_service.create_customer(
        make_payload("0988777666", full_name="Trần Thị Bình", classification="Potential", contracts=[]),
        ADMIN,
    )

    assert [c.full_name for c in customer_service.search_customers("bình")] == ["Trần Thị Bình"]
    assert [c.full_name for c in customer_service.search_customers("777")] == ["Trần Thị Bình"]
    assert len(customer_service.search_customers()) == 2
    assert [c.classification for c in customer_service.search_customers(classification="Signed")] == [
        "Signed"
    ]
    assert customer_service.search_customers("an", classification="Potential") == []


def test_staff_cannot_delete_customer(tmp_path) -> None:
    customer_service, _, _ = build_services(tmp_path)
    customer_id = customer_service.create_customer(make_payload(), STAFF)

    with pytest.raises(PermissionError, match="Bạn không có quyền xóa khách hàng"):
        customer_service.delete_customer(customer_id, STAFF)
    with pytest.raises(PermissionError):
        customer_service.delete_customer(customer_id, None)

    assert customer_service.get_customer(customer_id).created_by == "u-staff"


def test_delete_cascades_contracts_and_meetings(tmp_path) -> None:
    customer_service, _, pool = build_services(tmp_path)
    customer_id = customer_service.create_customer(
        make_payload(meeting_date=datetime(2024, 6, 12, 14, 0), meeting_notes="Tư vấn lần đầu"),
        ADMIN,
    )

    customer_service.delete_customer(customer_id, ADMIN)

    assert pool.fetchone("SELECT COUNT(*) AS n FROM insurance_contracts")["n"] == 0
    assert pool.fetchone("SELECT COUNT(*) AS n FROM meeting_records")["n"] == 0


def test_meetings_and_contracts_can_be_added_later(tmp_path) -> None:
    customer_service, _, _ = build_services(tmp_path)
    customer_id = customer_service.create_customer(
        make_payload(meeting_date=datetime(2024, 6, 12, 14, 0), meeting_notes="Tư vấn lần đầu"),
        ADMIN,
    )

    customer_service.add_meeting_record(customer_id, datetime(2024, 6, 1, 9, 0), "Gặp tại nhà")
    contract = customer_service.add_contract(
        customer_id,
        InsuranceCreate(
            company="Manulife",
            contract_number="MNL-7",
            join_date=date(2023, 9, 15),
            payment_frequency="year",
        ),
    )

    customer = customer_service.get_customer(customer_id)
    assert [m.notes for m in customer.meeting_records] == ["Gặp tại nhà", "Tư vấn lần đầu"]
    assert contract.next_payment_date == datetime(2024, 9, 15)
    assert [c.contract_number for c in customer.insurance_contracts] == ["PRU-001", "MNL-7"]

    with pytest.raises(ValueError, match="Vui lòng nhập nội dung cuộc gặp"):
        customer_service.add_meeting_record(customer_id, NOW, "  ")
    with pytest.raises(ValueError, match="Không tìm thấy khách hàng"):
        customer_service.add_meeting_record("missing", NOW, "Ghi chú")

    customer_service.remove_contract(customer_id, contract.id)
    assert len(customer_service.get_customer(customer_id).insurance_contracts) == 1
    with pytest.raises(ValueError, match="Không tìm thấy hợp đồng bảo hiểm"):
        customer_service.remove_contract(customer_id, contract.id)


def test_corrupted_stored_date_raises(tmp_path) -> None:
    customer_service, _, pool = build_services(tmp_path)
    customer_id = customer_service.create_customer(make_payload(), ADMIN)
    pool.execute("UPDATE customers SET date_of_birth = ? WHERE id = ?", ("12/06/1990", customer_id))

    with pytest.raises(ValueError, match="date_of_birth"):
        customer_service.list_customers()


def test_write_lock_is_one_per_entity(tmp_path) -> None:
    _, _, pool = build_services(tmp_path)

    assert pool.write_lock("customers") is pool.write_lock("customers")
    assert pool.write_lock("customers") is not pool.write_lock("users")


def test_failed_transaction_rolls_back(tmp_path) -> None:
    _, _, pool = build_services(tmp_path)

    with pytest.raises(RuntimeError):
        with pool.transaction("learning_contents") as cursor:
            cursor.execute(
                """
                INSERT INTO learning_contents (id, title, description, content_type, created_at)
                VALUES ('l1', 't', 'd', 'pdf', '2024-06-10T09:30:00')
                """
            )
            raise RuntimeError("boom")

    assert pool.fetchone("SELECT COUNT(*) AS n FROM learning_contents")["n"] == 0


def test_list_customers_is_not_torn_by_a_concurrent_writer(tmp_path, monkeypatch) -> None:
    customer_service, _, pool = build_services(tmp_path)
    existing_id = customer_service.create_customer(make_payload(), ADMIN)
    original_fetchall = pool.fetchall
    late_payload = make_payload(
        "0911111111",
        full_name="Lê Văn Muộn",
        contracts=[InsuranceCreate("AIA", "LATE-1", date(2024, 1, 20))],
    )
    writer = threading.Thread(target=customer_service.create_customer, args=(late_payload, ADMIN))
    calls = []

    def fetchall_then_write(query, params=()):
        rows = original_fetchall(query, params)
        if not calls:
            calls.append(query)
            writer.start()
            writer.join(timeout=0.5)
        return rows

    monkeypatch.setattr(pool, "fetchall", fetchall_then_write)
    snapshot = customer_service.list_customers()
    writer.join(timeout=5)
    monkeypatch.setattr(pool, "fetchall", original_fetchall)

    assert not writer.is_alive()
    assert [(c.id, len(c.insurance_contracts)) for c in snapshot] == [(existing_id, 1)]
    fresh = {c.full_name: len(c.insurance_contracts) for c in customer_service.list_customers()}
    assert fresh == {"Nguyễn Văn An": 1, "Lê Văn Muộn": 1}


def test_updated_at_follows_the_service_clock(tmp_path) -> None:
    times = [NOW]
    customer_service, _, _ = build_services(tmp_path, clock=lambda: times[-1])
    customer_id = customer_service.create_customer(make_payload(), ADMIN)
    later = NOW + timedelta(hours=2)
    times.append(later)

    customer_service.add_meeting_record(customer_id, datetime(2024, 6, 20, 9, 0), "Gọi điện")

    customer = customer_service.get_customer(customer_id)
    assert customer.created_at == NOW
    assert customer.updated_at == later
    assert customer.meeting_records[-1].created_at == later


def test_closed_connection_is_reopened_on_next_use(tmp_path) -> None:
    customer_service, _, pool = build_services(tmp_path)
    customer_service.create_customer(make_payload(), ADMIN)
    first = pool.get_connection()

    pool.close_connection()

    assert pool.get_connection() is not first
    assert len(customer_service.list_customers()) == 1
