"""Input validation rules for customer, contract, user and learning records."""

from __future__ import annotations

import re
from decimal import Decimal

from lifecrm_app.models.customer import CLASSIFICATIONS
from lifecrm_app.models.insurance import PAYMENT_FREQUENCIES
from lifecrm_app.models.learning import CONTENT_TYPES
from lifecrm_app.models.user import ROLES

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^\+?\d{9,12}$")
NON_DIGIT_PATTERN = re.compile(r"[\s.\-()]")
MIN_PASSWORD_LENGTH = 6


def validate_required_text(value: str, message: str) -> str:
    """Strip text and reject empty values with ``message``."""
    normalized = (value or "").strip()
    if not normalized:
        raise ValueError(message)
    return normalized


def validate_phone(phone: str) -> str:
    """Normalize separators away and check digit count."""
    normalized = NON_DIGIT_PATTERN.sub("", validate_required_text(phone, "Vui lòng nhập số điện thoại"))
    if not PHONE_PATTERN.match(normalized):
        raise ValueError("Số điện thoại không hợp lệ")
    return normalized


def validate_classification(classification: str) -> str:
    if classification not in CLASSIFICATIONS:
        raise ValueError(f"Phân loại khách hàng không hợp lệ: {classification}")
    return classification


def validate_payment_frequency(frequency: str) -> str:
    if frequency not in PAYMENT_FREQUENCIES:
        raise ValueError(f"Định kỳ đóng phí không hợp lệ: {frequency}")
    return frequency


def validate_premium(premium: Decimal) -> Decimal:
    if premium < 0:
        raise ValueError("Phí bảo hiểm không được âm")
    return premium


def validate_email(email: str) -> str:
    normalized = email.strip().lower()
    if not EMAIL_PATTERN.match(normalized):
        raise ValueError("Email không hợp lệ")
    return normalized


def validate_password(password: str) -> str:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Mật khẩu phải có ít nhất {MIN_PASSWORD_LENGTH} ký tự")
    return password


def validate_role(role: str) -> str:
    if role not in ROLES:
        raise ValueError(f"Vai trò không hợp lệ: {role}")
    return role


def validate_content_type(content_type: str) -> str:
    if content_type not in CONTENT_TYPES:
        raise ValueError(f"Loại nội dung không hợp lệ: {content_type}")
    return content_type
