"""User accounts, login and role bookkeeping."""

from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime
from typing import Callable

from lifecrm_app.core.crypto import hash_password, verify_password
from lifecrm_app.core.permissions import ensure_can_delete_users, ensure_can_manage_users
from lifecrm_app.core.validation import (
    validate_email,
    validate_password,
    validate_role,
)
from lifecrm_app.models.user import ROLES, User, UserCreate
from lifecrm_app.repositories.audit_repository import AuditRepository
from lifecrm_app.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)

LOGIN_FAILED_MESSAGE = "Email hoặc mật khẩu không đúng"


class UserService:
    """Coordinates account use cases."""

    def __init__(
        self,
        user_repo: UserRepository,
        audit_repo: AuditRepository,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._user_repo = user_repo
        self._audit_repo = audit_repo
        self._clock = clock

    def _create(self, payload: UserCreate, created_by: str) -> User:
        if not payload.full_name.strip() or not payload.email.strip() or not payload.password:
            raise ValueError("Vui lòng điền đầy đủ thông tin bắt buộc")
        password = validate_password(payload.password)
        user = User(
            id=uuid.uuid4().hex,
            email=validate_email(payload.email),
            full_name=payload.full_name.strip(),
            role=validate_role(payload.role),
            created_at=self._clock(),
            phone_number=payload.phone_number.strip(),
            created_by=created_by,
        )
        self._user_repo.create_user(user, hash_password(password))
        self._audit_repo.add_log(
            "CREATE",
            "user",
            user.id,
            json.dumps(
                {"event": "user created", "email": user.email, "role": user.role},
                ensure_ascii=False,
            ),
            actor_id=created_by or None,
        )
        return user

    def add_user(self, payload: UserCreate, actor: User | None) -> User:
        """Create a staff account on behalf of an Admin or Manager."""
        ensure_can_manage_users(actor)
        return self._create(payload, created_by=actor.id)

    def ensure_admin(self, email: str, password: str, full_name: str = "Administrator") -> User | None:
        """Seed the first Admin when the user table is empty."""
        if self._user_repo.count_users():
            return None
        logger.info("seeding initial admin account %s", email)
        return self._create(
            UserCreate(full_name=full_name, email=email, password=password, role="Admin"),
            created_by="",
        )

    def authenticate(self, email: str, password: str) -> User:
        if not email.strip() or not password:
            raise ValueError("Vui lòng nhập email và mật khẩu")
        found = self._user_repo.get_credentials(email.strip().lower())
        if found is None or not verify_password(password, found[1]):
            logger.warning("failed login for %s", email)
            raise ValueError(LOGIN_FAILED_MESSAGE)
        user = found[0]
        self._audit_repo.add_log("LOGIN", "user", user.id, "user logged in", actor_id=user.id)
        return user

    def list_users(self, keyword: str = "") -> list[User]:
        return self._user_repo.list_users(keyword)

    def role_counts(self) -> dict[str, int]:
        counts = {role: 0 for role in ROLES}
        for user in self._user_repo.list_users():
            counts[user.role] = counts.get(user.role, 0) + 1
        return counts

    def delete_user(self, user_id: str, actor: User | None) -> None:
        ensure_can_delete_users(actor)
        if actor.id == user_id:
            raise ValueError("Không thể xóa tài khoản đang đăng nhập")
        if self._user_repo.delete_user(user_id) == 0:
            raise ValueError("Không tìm thấy nhân viên")
        self._audit_repo.add_log("DELETE", "user", user_id, "user deleted", actor_id=actor.id)
