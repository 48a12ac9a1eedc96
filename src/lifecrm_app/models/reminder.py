"""Derived reminder and dashboard models. Never persisted."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any

BIRTHDAY = "birthday"
PAYMENT_DUE = "payment-due"
PAYMENT_OVERDUE = "payment-overdue"


@dataclass(frozen=True)
class Reminder:
    """Upcoming or overdue event tied to a customer.

    Exactly one of ``days_until`` and ``days_overdue`` is set.
    """

    customer_id: str
    customer_name: str
    type: str
    date: datetime
    message: str
    days_until: int | None = None
    days_overdue: int | None = None

    @property
    def severity(self) -> int:
        if self.days_overdue is not None:
            return self.days_overdue
        return self.days_until if self.days_until is not None else 0

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["date"] = self.date.isoformat()
        return data


@dataclass(frozen=True)
class DashboardStats:
    total_customers: int = 0
    signed_count: int = 0
    potential_count: int = 0
    dropped_count: int = 0
    upcoming_meetings: int = 0
    upcoming_payments: int = 0
    overdue_payments: int = 0
    upcoming_birthdays: int = 0
    new_customers_this_month: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)
