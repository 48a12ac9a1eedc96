"""Role checks for actions restricted by account role."""

from __future__ import annotations

from lifecrm_app.models.user import User


def _require_role(actor: User | None, allowed: set[str], message: str) -> None:
    if actor is None or actor.role not in allowed:
        raise PermissionError(message)


def ensure_can_delete_customer(actor: User | None) -> None:
    _require_role(actor, {"Admin", "Manager"}, "Bạn không có quyền xóa khách hàng")


def ensure_can_manage_users(actor: User | None) -> None:
    _require_role(actor, {"Admin", "Manager"}, "Bạn không có quyền tạo tài khoản")


def ensure_can_delete_users(actor: User | None) -> None:
    _require_role(actor, {"Admin"}, "Bạn không có quyền xóa nhân viên")


def ensure_can_add_learning(actor: User | None) -> None:
    _require_role(actor, {"Admin"}, "Bạn không có quyền thêm bài học")
