"""Customer domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime

from lifecrm_app.models.insurance import InsuranceContract, InsuranceCreate

CLASSIFICATIONS = ("Signed", "Potential", "Dropped")

CLASSIFICATION_LABELS = {
    "Signed": "Đã ký",
    "Potential": "Tiềm năng",
    "Dropped": "Đã bỏ",
}


@dataclass
class Address:
    hamlet: str = ""
    commune: str = ""
    district: str = ""
    province: str = ""
    city: str = ""

    def display(self) -> str:
        parts = [self.hamlet, self.commune, self.district, self.province or self.city]
        return ", ".join(part for part in parts if part)


@dataclass
class MeetingRecord:
    """One meeting with a customer."""

    id: str
    date: datetime
    notes: str
    created_at: datetime


@dataclass
class CustomerCreate:
    """Input model for creating or updating a customer."""

    full_name: str
    phone_number: str
    date_of_birth: date
    classification: str = "Potential"
    address: Address = field(default_factory=Address)
    occupation: str = ""
    financial_status: str = ""
    family_info: str = ""
    meeting_date: datetime | None = None
    meeting_notes: str = ""
    contracts: list[InsuranceCreate] = field(default_factory=list)


@dataclass
class Customer:
    """Fully deserialized customer record as consumed by the reminder engine."""

    id: str
    full_name: str
    phone_number: str
    date_of_birth: date
    classification: str
    created_at: datetime
    updated_at: datetime
    address: Address = field(default_factory=Address)
    occupation: str = ""
    financial_status: str = ""
    family_info: str = ""
    created_by: str = ""
    insurance_contracts: list[InsuranceContract] = field(default_factory=list)
    meeting_records: list[MeetingRecord] = field(default_factory=list)
