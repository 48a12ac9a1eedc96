"""Conversion between stored text columns and domain values.

Every date that reaches a service or the reminder engine has passed through
one of the ``parse_*`` functions, so callers never see serialized dates.
"""

from __future__ import annotations

import json
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from lifecrm_app.models.customer import Address


def format_date(value: date) -> str:
    return value.isoformat()


def format_datetime(value: datetime) -> str:
    return value.isoformat(timespec="seconds")


def parse_date(value: str, field_name: str) -> date:
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError) as error:
        raise ValueError(f"Stored {field_name} is not a valid date: {value!r}") from error


def parse_datetime(value: str, field_name: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except (TypeError, ValueError) as error:
        raise ValueError(f"Stored {field_name} is not a valid timestamp: {value!r}") from error


def parse_decimal(value: str, field_name: str) -> Decimal:
    try:
        return Decimal(value)
    except (InvalidOperation, TypeError) as error:
        raise ValueError(f"Stored {field_name} is not a valid amount: {value!r}") from error


def dump_address(address: Address) -> str:
    return json.dumps(
        {
            "hamlet": address.hamlet,
            "commune": address.commune,
            "district": address.district,
            "province": address.province,
            "city": address.city,
        },
        ensure_ascii=False,
    )


def load_address(raw: str | None) -> Address:
    data = json.loads(raw or "{}")
    return Address(
        hamlet=data.get("hamlet", ""),
        commune=data.get("commune", ""),
        district=data.get("district", ""),
        province=data.get("province", ""),
        city=data.get("city", ""),
    )
