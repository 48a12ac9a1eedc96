"""Customer service with validation, duplicate checks and audit logs."""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Callable

from lifecrm_app.core.crypto import mask_phone
from lifecrm_app.core.permissions import ensure_can_delete_customer
from lifecrm_app.core.schedule import calculate_next_payment_date
from lifecrm_app.core.validation import (
    validate_classification,
    validate_payment_frequency,
    validate_phone,
    validate_premium,
    validate_required_text,
)
from lifecrm_app.models.customer import Customer, CustomerCreate, MeetingRecord
from lifecrm_app.models.insurance import InsuranceContract, InsuranceCreate
from lifecrm_app.models.user import User
from lifecrm_app.repositories.audit_repository import AuditRepository
from lifecrm_app.repositories.customer_repository import (
    DUPLICATE_CONTRACT_MESSAGE,
    DUPLICATE_PHONE_MESSAGE,
    CustomerRepository,
)

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "Không tìm thấy khách hàng"
DUPLICATE_IN_FORM_MESSAGE = "Số hợp đồng này đã được thêm vào danh sách"


def _new_id() -> str:
    return uuid.uuid4().hex


class CustomerService:
    """Coordinates customer, contract and meeting use cases."""

    def __init__(
        self,
        customer_repo: CustomerRepository,
        audit_repo: AuditRepository,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._customer_repo = customer_repo
        self._audit_repo = audit_repo
        self._clock = clock

    def _validate(self, payload: CustomerCreate, customer_id: str | None = None) -> CustomerCreate:
        full_name = validate_required_text(payload.full_name, "Vui lòng nhập họ tên")
        phone_number = validate_phone(payload.phone_number)
        if self._customer_repo.phone_number_exists(phone_number, exclude_customer_id=customer_id):
            raise ValueError(DUPLICATE_PHONE_MESSAGE)
        return replace(
            payload,
            full_name=full_name,
            phone_number=phone_number,
            classification=validate_classification(payload.classification),
            occupation=payload.occupation.strip(),
            financial_status=payload.financial_status.strip(),
            family_info=payload.family_info.strip(),
            meeting_notes=payload.meeting_notes.strip(),
        )

    def _build_contract(
        self,
        payload: InsuranceCreate,
        customer_id: str | None,
        pending_numbers: set[str],
    ) -> InsuranceContract:
        company = validate_required_text(payload.company, "Vui lòng chọn công ty bảo hiểm")
        number = validate_required_text(payload.contract_number, "Vui lòng nhập số hợp đồng")
        if number in pending_numbers:
            raise ValueError(DUPLICATE_IN_FORM_MESSAGE)
        if self._customer_repo.contract_number_exists(number, exclude_customer_id=customer_id):
            raise ValueError(DUPLICATE_CONTRACT_MESSAGE)
        pending_numbers.add(number)

        frequency = validate_payment_frequency(payload.payment_frequency)
        return InsuranceContract(
            id=_new_id(),
            company=company,
            contract_number=number,
            join_date=payload.join_date,
            payment_frequency=frequency,
            next_payment_date=calculate_next_payment_date(payload.join_date, frequency, self._clock()),
            premium_amount=validate_premium(payload.premium_amount),
            policy_details=payload.policy_details.strip(),
        )

    def _initial_meetings(self, payload: CustomerCreate) -> list[MeetingRecord]:
        if not payload.meeting_notes:
            return []
        now = self._clock()
        return [
            MeetingRecord(
                id=_new_id(),
                date=payload.meeting_date or now,
                notes=payload.meeting_notes,
                created_at=now,
            )
        ]

    def create_customer(self, payload: CustomerCreate, actor: User | None = None) -> str:
        """Validate, persist, and audit customer creation."""
        normalized = self._validate(payload)
        pending: set[str] = set()
        contracts = [self._build_contract(item, None, pending) for item in normalized.contracts]
        now = self._clock()
        customer = Customer(
            id=_new_id(),
            full_name=normalized.full_name,
            phone_number=normalized.phone_number,
            date_of_birth=normalized.date_of_birth,
            classification=normalized.classification,
            created_at=now,
            updated_at=now,
            address=normalized.address,
            occupation=normalized.occupation,
            financial_status=normalized.financial_status,
            family_info=normalized.family_info,
            created_by=actor.id if actor else "",
            insurance_contracts=contracts,
            meeting_records=self._initial_meetings(normalized),
        )
        self._customer_repo.create_customer(customer)
        logger.info("customer %s created with %d contracts", customer.id, len(contracts))
        self._audit(
            "CREATE",
            customer.id,
            {"event": "customer created", "after": self._snapshot(customer)},
            actor,
        )
        return customer.id

    def get_customer(self, customer_id: str) -> Customer:
        customer = self._customer_repo.get_customer(customer_id)
        if customer is None:
            raise ValueError(NOT_FOUND_MESSAGE)
        return customer

    def list_customers(self) -> list[Customer]:
        return self._customer_repo.list_customers()

    def search_customers(self, query: str = "", classification: str | None = None) -> list[Customer]:
        """Match name (case-insensitive) or phone substring, optionally per classification."""
        needle = query.strip().lower()
        results: list[Customer] = []
        for customer in self._customer_repo.list_customers():
            if classification and customer.classification != classification:
                continue
            if needle and needle not in customer.full_name.lower() and needle not in customer.phone_number:
                continue
            results.append(customer)
        return results

    def update_customer(
        self,
        customer_id: str,
        payload: CustomerCreate,
        actor: User | None = None,
    ) -> None:
        """Update profile fields; contracts and meeting notes in the payload are appended."""
        before = self.get_customer(customer_id)
        normalized = self._validate(payload, customer_id=customer_id)
        pending = {contract.contract_number for contract in before.insurance_contracts}
        added = [self._build_contract(item, customer_id, pending) for item in normalized.contracts]
        after = replace(
            before,
            full_name=normalized.full_name,
            phone_number=normalized.phone_number,
            date_of_birth=normalized.date_of_birth,
            classification=normalized.classification,
            address=normalized.address,
            occupation=normalized.occupation,
            financial_status=normalized.financial_status,
            family_info=normalized.family_info,
            updated_at=self._clock(),
            insurance_contracts=before.insurance_contracts + added,
            meeting_records=before.meeting_records + self._initial_meetings(normalized),
        )
        if self._customer_repo.update_customer(after) == 0:
            raise ValueError(NOT_FOUND_MESSAGE)
        self._audit(
            "UPDATE",
            customer_id,
            {
                "event": "customer updated",
                "changes": self._diff(self._snapshot(before), self._snapshot(after)),
            },
            actor,
        )

    def delete_customer(self, customer_id: str, actor: User | None) -> None:
        """Delete a customer and everything it owns; Staff accounts may not."""
        ensure_can_delete_customer(actor)
        before = self.get_customer(customer_id)
        if self._customer_repo.delete_customer(customer_id) == 0:
            raise ValueError(NOT_FOUND_MESSAGE)
        logger.info("customer %s deleted", customer_id)
        self._audit(
            "DELETE",
            customer_id,
            {"event": "customer deleted", "before": self._snapshot(before)},
            actor,
        )

    def add_meeting_record(
        self,
        customer_id: str,
        meeting_date: datetime,
        notes: str,
        actor: User | None = None,
    ) -> str:
        normalized = validate_required_text(notes, "Vui lòng nhập nội dung cuộc gặp")
        if not self._customer_repo.exists(customer_id):
            raise ValueError(NOT_FOUND_MESSAGE)
        now = self._clock()
        record = MeetingRecord(
            id=_new_id(),
            date=meeting_date,
            notes=normalized,
            created_at=now,
        )
        self._customer_repo.add_meeting_record(customer_id, record, updated_at=now)
        self._audit(
            "CREATE",
            customer_id,
            {"event": "meeting added", "meeting_id": record.id, "date": meeting_date.isoformat()},
            actor,
        )
        return record.id

    def add_contract(
        self,
        customer_id: str,
        payload: InsuranceCreate,
        actor: User | None = None,
    ) -> InsuranceContract:
        customer = self.get_customer(customer_id)
        pending = {contract.contract_number for contract in customer.insurance_contracts}
        contract = self._build_contract(payload, customer_id, pending)
        self._customer_repo.add_contract(customer_id, contract, updated_at=self._clock())
        self._audit(
            "CREATE",
            customer_id,
            {
                "event": "contract added",
                "contract_number": contract.contract_number,
                "company": contract.company,
                "next_payment_date": contract.next_payment_date.isoformat(),
            },
            actor,
        )
        return contract

    def remove_contract(self, customer_id: str, contract_id: str, actor: User | None = None) -> None:
        removed = self._customer_repo.remove_contract(customer_id, contract_id, updated_at=self._clock())
        if removed == 0:
            raise ValueError("Không tìm thấy hợp đồng bảo hiểm")
        self._audit(
            "DELETE",
            customer_id,
            {"event": "contract removed", "contract_id": contract_id},
            actor,
        )

    def contract_number_exists(self, contract_number: str, exclude_customer_id: str | None = None) -> bool:
        return self._customer_repo.contract_number_exists(
            contract_number.strip(), exclude_customer_id=exclude_customer_id
        )

    def phone_number_exists(self, phone_number: str, exclude_customer_id: str | None = None) -> bool:
        return self._customer_repo.phone_number_exists(
            validate_phone(phone_number), exclude_customer_id=exclude_customer_id
        )

    def _audit(self, action: str, customer_id: str, detail: dict, actor: User | None) -> None:
        self._audit_repo.add_log(
            action,
            "customer",
            customer_id,
            json.dumps(detail, ensure_ascii=False),
            actor_id=actor.id if actor else None,
        )

    @staticmethod
    def _snapshot(customer: Customer) -> dict[str, str]:
        """Masked snapshot for audit logs."""
        return {
            "full_name": customer.full_name,
            "phone_number": mask_phone(customer.phone_number),
            "date_of_birth": customer.date_of_birth.isoformat(),
            "classification": customer.classification,
            "address": customer.address.display(),
            "occupation": customer.occupation,
            "family_info": customer.family_info,
            "contracts": ",".join(c.contract_number for c in customer.insurance_contracts),
            "meetings": str(len(customer.meeting_records)),
        }

    @staticmethod
    def _diff(before: dict[str, str], after: dict[str, str]) -> dict[str, dict[str, str]]:
        """Return changed fields for audit logs."""
        changes: dict[str, dict[str, str]] = {}
        for key in sorted(set(before) | set(after)):
            old = before.get(key, "")
            new = after.get(key, "")
            if old != new:
                changes[key] = {"before": old, "after": new}
        return changes
