"""Customer repository; contracts and meetings are stored with their owner."""

from __future__ import annotations

import sqlite3
from collections import defaultdict
from datetime import datetime
from typing import Protocol

from lifecrm_app.core.crypto import CryptoService
from lifecrm_app.models.customer import Customer, MeetingRecord
from lifecrm_app.models.insurance import InsuranceContract
from lifecrm_app.repositories.codec import (
    dump_address,
    format_date,
    format_datetime,
    load_address,
    parse_date,
    parse_datetime,
    parse_decimal,
)
from lifecrm_app.repositories.db_pool import ThreadLocalConnection

DUPLICATE_PHONE_MESSAGE = "Số điện thoại này đã tồn tại trong hệ thống. Vui lòng kiểm tra lại."
DUPLICATE_CONTRACT_MESSAGE = "Số hợp đồng này đã tồn tại trong hệ thống"

CUSTOMER_COLUMNS = """
    id,
    full_name,
    phone_encrypted,
    date_of_birth,
    classification,
    address_json,
    occupation,
    financial_status_encrypted,
    family_info,
    created_by,
    created_at,
    updated_at
"""


class CustomerSource(Protocol):
    """Anything that can hand out a consistent customer snapshot."""

    def list_customers(self) -> list[Customer]:
        ...


class CustomerRepository:
    """Handles customer persistence with encrypted contact fields."""

    def __init__(self, pool: ThreadLocalConnection, crypto_service: CryptoService):
        self._pool = pool
        self._crypto = crypto_service

    def phone_hash(self, phone_number: str) -> str:
        return self._crypto.lookup_hash(phone_number)

    @staticmethod
    def _duplicate_message(error: sqlite3.IntegrityError) -> str | None:
        message = str(error)
        if "customers.phone_hash" in message:
            return DUPLICATE_PHONE_MESSAGE
        if "insurance_contracts.contract_number" in message:
            return DUPLICATE_CONTRACT_MESSAGE
        return None

    def _customer_params(self, customer: Customer) -> tuple:
        return (
            customer.full_name,
            self._crypto.encrypt_text(customer.phone_number),
            self.phone_hash(customer.phone_number),
            format_date(customer.date_of_birth),
            customer.classification,
            dump_address(customer.address),
            customer.occupation,
            self._crypto.encrypt_text(customer.financial_status),
            customer.family_info,
        )

    @staticmethod
    def _insert_children(cursor: sqlite3.Cursor, customer: Customer) -> None:
        for contract in customer.insurance_contracts:
            CustomerRepository._insert_contract(cursor, customer.id, contract)
        for record in customer.meeting_records:
            CustomerRepository._insert_meeting(cursor, customer.id, record)

    @staticmethod
    def _insert_contract(cursor: sqlite3.Cursor, customer_id: str, contract: InsuranceContract) -> None:
        cursor.execute(
            """
            INSERT INTO insurance_contracts (
                id,
                customer_id,
                company,
                contract_number,
                policy_details,
                join_date,
                premium_amount,
                payment_frequency,
                next_payment_date
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                contract.id,
                customer_id,
                contract.company,
                contract.contract_number,
                contract.policy_details,
                format_date(contract.join_date),
                str(contract.premium_amount),
                contract.payment_frequency,
                format_datetime(contract.next_payment_date),
            ),
        )

    @staticmethod
    def _insert_meeting(cursor: sqlite3.Cursor, customer_id: str, record: MeetingRecord) -> None:
        cursor.execute(
            """
            INSERT INTO meeting_records (id, customer_id, date, notes, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                record.id,
                customer_id,
                format_datetime(record.date),
                record.notes,
                format_datetime(record.created_at),
            ),
        )

    def create_customer(self, customer: Customer) -> None:
        """Insert a customer together with its contracts and meetings."""
        try:
            with self._pool.transaction("customers") as cursor:
                cursor.execute(
                    """
                    INSERT INTO customers (
                        full_name,
                        phone_encrypted,
                        phone_hash,
                        date_of_birth,
                        classification,
                        address_json,
                        occupation,
                        financial_status_encrypted,
                        family_info,
                        id,
                        created_by,
                        created_at,
                        updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    self._customer_params(customer)
                    + (
                        customer.id,
                        customer.created_by,
                        format_datetime(customer.created_at),
                        format_datetime(customer.updated_at),
                    ),
                )
                self._insert_children(cursor, customer)
        except sqlite3.IntegrityError as error:
            message = self._duplicate_message(error)
            if message is None:
                raise
            raise ValueError(message) from error

    def update_customer(self, customer: Customer) -> int:
        """Replace a customer row and its owned contracts and meetings."""
        try:
            with self._pool.transaction("customers") as cursor:
                cursor.execute(
                    """
                    UPDATE customers
                    SET
                        full_name = ?,
                        phone_encrypted = ?,
                        phone_hash = ?,
                        date_of_birth = ?,
                        classification = ?,
                        address_json = ?,
                        occupation = ?,
                        financial_status_encrypted = ?,
                        family_info = ?,
                        updated_at = ?
                    WHERE id = ?
                    """,
                    self._customer_params(customer)
                    + (format_datetime(customer.updated_at), customer.id),
                )
                updated = cursor.rowcount
                if updated:
                    cursor.execute(
                        "DELETE FROM insurance_contracts WHERE customer_id = ?", (customer.id,)
                    )
                    cursor.execute("DELETE FROM meeting_records WHERE customer_id = ?", (customer.id,))
                    self._insert_children(cursor, customer)
                return updated
        except sqlite3.IntegrityError as error:
            message = self._duplicate_message(error)
            if message is None:
                raise
            raise ValueError(message) from error

    def delete_customer(self, customer_id: str) -> int:
        """Delete a customer; contracts and meetings cascade."""
        with self._pool.transaction("customers") as cursor:
            cursor.execute("DELETE FROM customers WHERE id = ?", (customer_id,))
            return cursor.rowcount

    def add_contract(self, customer_id: str, contract: InsuranceContract, updated_at: datetime) -> None:
        try:
            with self._pool.transaction("customers") as cursor:
                self._insert_contract(cursor, customer_id, contract)
                self._touch(cursor, customer_id, updated_at)
        except sqlite3.IntegrityError as error:
            message = self._duplicate_message(error)
            if message is None:
                raise
            raise ValueError(message) from error

    def remove_contract(self, customer_id: str, contract_id: str, updated_at: datetime) -> int:
        with self._pool.transaction("customers") as cursor:
            cursor.execute(
                "DELETE FROM insurance_contracts WHERE id = ? AND customer_id = ?",
                (contract_id, customer_id),
            )
            removed = cursor.rowcount
            if removed:
                self._touch(cursor, customer_id, updated_at)
            return removed

    def add_meeting_record(self, customer_id: str, record: MeetingRecord, updated_at: datetime) -> None:
        with self._pool.transaction("customers") as cursor:
            self._insert_meeting(cursor, customer_id, record)
            self._touch(cursor, customer_id, updated_at)

    @staticmethod
    def _touch(cursor: sqlite3.Cursor, customer_id: str, updated_at: datetime) -> None:
        cursor.execute(
            "UPDATE customers SET updated_at = ? WHERE id = ?",
            (format_datetime(updated_at), customer_id),
        )

    def exists(self, customer_id: str) -> bool:
        row = self._pool.fetchone("SELECT 1 FROM customers WHERE id = ? LIMIT 1", (customer_id,))
        return row is not None

    def phone_number_exists(self, phone_number: str, exclude_customer_id: str | None = None) -> bool:
        row = self._pool.fetchone(
            "SELECT id FROM customers WHERE phone_hash = ? AND id != ? LIMIT 1",
            (self.phone_hash(phone_number), exclude_customer_id or ""),
        )
        return row is not None

    def contract_number_exists(
        self,
        contract_number: str,
        exclude_customer_id: str | None = None,
    ) -> bool:
        row = self._pool.fetchone(
            """
            SELECT 1
            FROM insurance_contracts
            WHERE contract_number = ? AND customer_id != ?
            LIMIT 1
            """,
            (contract_number, exclude_customer_id or ""),
        )
        return row is not None

    def get_customer(self, customer_id: str) -> Customer | None:
        with self._pool.read_snapshot("customers"):
            row = self._pool.fetchone(
                f"SELECT {CUSTOMER_COLUMNS} FROM customers WHERE id = ?",
                (customer_id,),
            )
            if row is None:
                return None
            contracts = self._pool.fetchall(
                "SELECT * FROM insurance_contracts WHERE customer_id = ? ORDER BY rowid",
                (customer_id,),
            )
            meetings = self._pool.fetchall(
                "SELECT * FROM meeting_records WHERE customer_id = ? ORDER BY date, rowid",
                (customer_id,),
            )
        return self._to_customer(
            row,
            [self._to_contract(item) for item in contracts],
            [self._to_meeting(item) for item in meetings],
        )

    def list_customers(self) -> list[Customer]:
        """Return every customer fully loaded, in insertion order.

        All three reads share one read transaction under the customer write
        lock, so no write can land between them.
        """
        with self._pool.read_snapshot("customers"):
            contract_rows = self._pool.fetchall("SELECT * FROM insurance_contracts ORDER BY rowid")
            meeting_rows = self._pool.fetchall("SELECT * FROM meeting_records ORDER BY date, rowid")
            rows = self._pool.fetchall(f"SELECT {CUSTOMER_COLUMNS} FROM customers ORDER BY rowid")

        contracts: dict[str, list[InsuranceContract]] = defaultdict(list)
        for row in contract_rows:
            contracts[row["customer_id"]].append(self._to_contract(row))
        meetings: dict[str, list[MeetingRecord]] = defaultdict(list)
        for row in meeting_rows:
            meetings[row["customer_id"]].append(self._to_meeting(row))
        return [self._to_customer(row, contracts[row["id"]], meetings[row["id"]]) for row in rows]

    def _to_customer(
        self,
        row: sqlite3.Row,
        contracts: list[InsuranceContract],
        meetings: list[MeetingRecord],
    ) -> Customer:
        financial = row["financial_status_encrypted"]
        return Customer(
            id=row["id"],
            full_name=row["full_name"],
            phone_number=self._crypto.decrypt_text(row["phone_encrypted"]),
            date_of_birth=parse_date(row["date_of_birth"], "date_of_birth"),
            classification=row["classification"],
            created_at=parse_datetime(row["created_at"], "created_at"),
            updated_at=parse_datetime(row["updated_at"], "updated_at"),
            address=load_address(row["address_json"]),
            occupation=row["occupation"] or "",
            financial_status=self._crypto.decrypt_text(financial) if financial else "",
            family_info=row["family_info"] or "",
            created_by=row["created_by"] or "",
            insurance_contracts=contracts,
            meeting_records=meetings,
        )

    @staticmethod
    def _to_contract(row: sqlite3.Row) -> InsuranceContract:
        return InsuranceContract(
            id=row["id"],
            company=row["company"],
            contract_number=row["contract_number"],
            join_date=parse_date(row["join_date"], "join_date"),
            payment_frequency=row["payment_frequency"],
            next_payment_date=parse_datetime(row["next_payment_date"], "next_payment_date"),
            premium_amount=parse_decimal(row["premium_amount"], "premium_amount"),
            policy_details=row["policy_details"] or "",
        )

    @staticmethod
    def _to_meeting(row: sqlite3.Row) -> MeetingRecord:
        return MeetingRecord(
            id=row["id"],
            date=parse_datetime(row["date"], "meeting date"),
            notes=row["notes"],
            created_at=parse_datetime(row["created_at"], "meeting created_at"),
        )
