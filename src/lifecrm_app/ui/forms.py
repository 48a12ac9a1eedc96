"""Text parsing for the GUI forms; kept free of Qt so it can be tested directly."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from lifecrm_app.models.insurance import InsuranceCreate

DATE_FORMAT = "%d/%m/%Y"
DATETIME_FORMAT = "%d/%m/%Y %H:%M"


def format_date_text(value: date) -> str:
    return value.strftime(DATE_FORMAT)


def format_datetime_text(value: datetime) -> str:
    return value.strftime(DATETIME_FORMAT)


def parse_date_text(raw: str, label: str) -> date:
    """Parse ``DD/MM/YYYY``."""
    text = raw.strip()
    if not text:
        raise ValueError(f"Vui lòng nhập {label}")
    try:
        return datetime.strptime(text, DATE_FORMAT).date()
    except ValueError as error:
        raise ValueError(f"{label.capitalize()} phải có dạng DD/MM/YYYY") from error


def parse_optional_datetime_text(raw: str, label: str) -> datetime | None:
    """Parse ``DD/MM/YYYY HH:MM`` or a bare date (midnight); blank gives None."""
    text = raw.strip()
    if not text:
        return None
    for fmt in (DATETIME_FORMAT, DATE_FORMAT):
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    raise ValueError(f"{label.capitalize()} phải có dạng DD/MM/YYYY HH:MM")


def parse_premium_text(raw: str) -> Decimal:
    """Blank means zero; thousands separators are accepted."""
    text = raw.strip().replace(",", "").replace(" ", "")
    if not text:
        return Decimal("0")
    try:
        return Decimal(text)
    except InvalidOperation as error:
        raise ValueError("Phí bảo hiểm phải là số, ví dụ 1500000") from error


def contract_payload(
    company: str,
    contract_number: str,
    join_date_text: str,
    payment_frequency: str,
    premium_text: str,
    policy_details: str = "",
) -> InsuranceCreate:
    return InsuranceCreate(
        company=company,
        contract_number=contract_number.strip(),
        join_date=parse_date_text(join_date_text, "ngày tham gia"),
        payment_frequency=payment_frequency,
        premium_amount=parse_premium_text(premium_text),
        policy_details=policy_details,
    )
