"""User account models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

ROLES = ("Admin", "Manager", "Staff")


@dataclass
class UserCreate:
    full_name: str
    email: str
    password: str
    role: str = "Staff"
    phone_number: str = ""


@dataclass
class User:
    """Account without credential material."""

    id: str
    email: str
    full_name: str
    role: str
    created_at: datetime
    phone_number: str = ""
    created_by: str = ""
