"""Insurance contract domain models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

PAYMENT_FREQUENCIES = ("month", "quarter", "6-month", "year")

PAYMENT_FREQUENCY_MONTHS = {
    "month": 1,
    "quarter": 3,
    "6-month": 6,
    "year": 12,
}

PAYMENT_FREQUENCY_LABELS = {
    "month": "Hàng tháng",
    "quarter": "Hàng quý",
    "6-month": "6 tháng",
    "year": "Hàng năm",
}


@dataclass
class InsuranceCreate:
    """Input model for a new contract; next payment date is derived."""

    company: str
    contract_number: str
    join_date: date
    payment_frequency: str = "month"
    premium_amount: Decimal = Decimal("0")
    policy_details: str = ""


@dataclass
class InsuranceContract:
    """Contract owned by value by a single customer."""

    id: str
    company: str
    contract_number: str
    join_date: date
    payment_frequency: str
    next_payment_date: datetime
    premium_amount: Decimal = Decimal("0")
    policy_details: str = ""
