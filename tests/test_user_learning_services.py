"""Tests for accounts and learning content."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from lifecrm_app.core.config import (
    AppConfig,
    AuthConfig,
    DatabaseConfig,
    EncryptionConfig,
    LoggingConfig,
)
from lifecrm_app.models.learning import LearningContentCreate
from lifecrm_app.models.user import UserCreate
from lifecrm_app.repositories.audit_repository import AuditRepository
from lifecrm_app.repositories.db_pool import ThreadLocalConnection
from lifecrm_app.repositories.learning_repository import LearningRepository
from lifecrm_app.repositories.schema import initialize_schema
from lifecrm_app.repositories.user_repository import UserRepository
from lifecrm_app.services.learning_service import LearningService
from lifecrm_app.services.user_service import UserService

NOW = datetime(2024, 6, 10, 9, 30)


class StepClock:
    """Returns a later timestamp on every call."""

    def __init__(self, start: datetime):
        self._current = start

    def __call__(self) -> datetime:
        self._current += timedelta(minutes=1)
        return self._current


def build_services(tmp_path):
    config = AppConfig(
        database=DatabaseConfig(path=str(tmp_path / "test.db")),
        encryption=EncryptionConfig(key_env="LIFECRM_ENCRYPTION_KEY"),
        logging=LoggingConfig(retention_days=1095),
        auth=AuthConfig(admin_email="admin@x.vn", admin_password_env="LIFECRM_ADMIN_PASSWORD"),
    )
    pool = ThreadLocalConnection(config)
    initialize_schema(pool)
    audit_repo = AuditRepository(pool)
    clock = StepClock(NOW)
    user_service = UserService(UserRepository(pool), audit_repo, clock=clock)
    learning_service = LearningService(LearningRepository(pool), audit_repo, clock=clock)
    return user_service, learning_service, audit_repo


def test_admin_is_seeded_once_and_can_log_in(tmp_path) -> None:
    user_service, _, audit_repo = build_services(tmp_path)

    admin = user_service.ensure_admin("Admin@X.vn", "secret123")
    again = user_service.ensure_admin("other@x.vn", "secret123")

    assert admin is not None and admin.role == "Admin"
    assert again is None
    logged_in = user_service.authenticate(" admin@x.vn ", "secret123")
    assert logged_in.id == admin.id
    assert audit_repo.list_logs(entity="user")[0]["action"] == "LOGIN"


def test_login_failures(tmp_path) -> None:
    user_service, _, _ = build_services(tmp_path)
    user_service.ensure_admin("admin@x.vn", "secret123")

    with pytest.raises(ValueError, match="Vui lòng nhập email và mật khẩu"):
        user_service.authenticate("", "secret123")
    with pytest.raises(ValueError, match="Email hoặc mật khẩu không đúng"):
        user_service.authenticate("admin@x.vn", "wrong-pass")
    with pytest.raises(ValueError, match="Email hoặc mật khẩu không đúng"):
        user_service.authenticate("nobody@x.vn", "secret123")


def test_managers_add_staff_and_roles_are_counted(tmp_path) -> None:
    user_service, _, _ = build_services(tmp_path)
    admin = user_service.ensure_admin("admin@x.vn", "secret123")

    manager = user_service.add_user(
        UserCreate(full_name="Lê Quản Lý", email="manager@x.vn", password="secret123", role="Manager"),
        admin,
    )
    staff = user_service.add_user(
        UserCreate(full_name="Phạm Nhân Viên", email="staff@x.vn", password="secret123"),
        manager,
    )

    assert staff.created_by == manager.id
    assert user_service.role_counts() == {"Admin": 1, "Manager": 1, "Staff": 1}
    assert [u.email for u in user_service.list_users("Nhân")] == ["staff@x.vn"]
    with pytest.raises(PermissionError, match="Bạn không có quyền tạo tài khoản"):
        user_service.add_user(
            UserCreate(full_name="X", email="x@x.vn", password="secret123"),
            staff,
        )


def test_add_user_validation(tmp_path) -> None:
    user_service, _, _ = build_services(tmp_path)
    admin = user_service.ensure_admin("admin@x.vn", "secret123")

    with pytest.raises(ValueError, match="Vui lòng điền đầy đủ thông tin bắt buộc"):
        user_service.add_user(UserCreate(full_name="", email="a@x.vn", password="secret123"), admin)
    with pytest.raises(ValueError, match="ít nhất 6 ký tự"):
        user_service.add_user(UserCreate(full_name="A", email="a@x.vn", password="123"), admin)
    with pytest.raises(ValueError, match="Email này đã được sử dụng"):
        user_service.add_user(
            UserCreate(full_name="A", email="ADMIN@x.vn", password="secret123"),
            admin,
        )


def test_only_admin_deletes_users(tmp_path) -> None:
    user_service, _, _ = build_services(tmp_path)
    admin = user_service.ensure_admin("admin@x.vn", "secret123")
    manager = user_service.add_user(
        UserCreate(full_name="M", email="m@x.vn", password="secret123", role="Manager"),
        admin,
    )

    with pytest.raises(PermissionError, match="Bạn không có quyền xóa nhân viên"):
        user_service.delete_user(admin.id, manager)
    with pytest.raises(ValueError, match="Không thể xóa tài khoản đang đăng nhập"):
        user_service.delete_user(admin.id, admin)

    user_service.delete_user(manager.id, admin)
    assert [u.id for u in user_service.list_users()] == [admin.id]
    with pytest.raises(ValueError, match="Không tìm thấy nhân viên"):
        user_service.delete_user(manager.id, admin)


def test_learning_content_lifecycle(tmp_path) -> None:
    user_service, learning_service, _ = build_services(tmp_path)
    admin = user_service.ensure_admin("admin@x.vn", "secret123")

    first = learning_service.add_content(
        LearningContentCreate(title="Quy trình tư vấn", description="Tài liệu nội bộ", content_type="pdf"),
        admin,
    )
    second = learning_service.add_content(
        LearningContentCreate(
            title="Kỹ năng chốt hợp đồng",
            description="Video hướng dẫn",
            content_type="video",
            url="https://example.com/v/1",
        ),
        admin,
    )

    assert [c.id for c in learning_service.list_content()] == [second.id, first.id]
    assert [c.id for c in learning_service.list_content("pdf")] == [first.id]

    learning_service.delete_content(first.id, admin)
    assert [c.id for c in learning_service.list_content()] == [second.id]
    with pytest.raises(ValueError, match="Không tìm thấy bài học"):
        learning_service.delete_content(first.id, admin)


def test_learning_content_rules(tmp_path) -> None:
    user_service, learning_service, _ = build_services(tmp_path)
    admin = user_service.ensure_admin("admin@x.vn", "secret123")
    staff = user_service.add_user(
        UserCreate(full_name="S", email="s@x.vn", password="secret123"),
        admin,
    )

    with pytest.raises(PermissionError, match="Bạn không có quyền thêm bài học"):
        learning_service.add_content(LearningContentCreate(title="T", description="D"), staff)
    with pytest.raises(ValueError, match="Vui lòng điền đầy đủ tiêu đề và mô tả"):
        learning_service.add_content(LearningContentCreate(title="T", description=" "), admin)
    with pytest.raises(ValueError, match="Vui lòng nhập URL video"):
        learning_service.add_content(
            LearningContentCreate(title="T", description="D", content_type="video"),
            admin,
        )
