"""User account repository."""

from __future__ import annotations

import sqlite3

from lifecrm_app.models.user import User
from lifecrm_app.repositories.codec import format_datetime, parse_datetime
from lifecrm_app.repositories.db_pool import ThreadLocalConnection

USER_COLUMNS = "id, email, full_name, role, phone_number, created_by, created_at"


class UserRepository:
    """Handles user persistence; password hashes never leave this class except for login."""

    def __init__(self, pool: ThreadLocalConnection):
        self._pool = pool

    def create_user(self, user: User, password_hash: str) -> None:
        try:
            with self._pool.transaction("users") as cursor:
                cursor.execute(
                    """
                    INSERT INTO users (
                        id,
                        email,
                        full_name,
                        role,
                        phone_number,
                        password_hash,
                        created_by,
                        created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        user.id,
                        user.email,
                        user.full_name,
                        user.role,
                        user.phone_number,
                        password_hash,
                        user.created_by,
                        format_datetime(user.created_at),
                    ),
                )
        except sqlite3.IntegrityError as error:
            if "users.email" not in str(error):
                raise
            raise ValueError("Email này đã được sử dụng") from error

    def get_user(self, user_id: str) -> User | None:
        row = self._pool.fetchone(f"SELECT {USER_COLUMNS} FROM users WHERE id = ?", (user_id,))
        return self._to_user(row) if row else None

    def get_credentials(self, email: str) -> tuple[User, str] | None:
        """Return the user and stored password hash for ``email``."""
        row = self._pool.fetchone(
            f"SELECT {USER_COLUMNS}, password_hash FROM users WHERE email = ?",
            (email,),
        )
        if row is None:
            return None
        return self._to_user(row), row["password_hash"]

    def list_users(self, keyword: str = "") -> list[User]:
        pattern = f"%{keyword.strip()}%"
        rows = self._pool.fetchall(
            f"""
            SELECT {USER_COLUMNS}
            FROM users
            WHERE full_name LIKE ? OR email LIKE ?
            ORDER BY created_at, rowid
            """,
            (pattern, pattern),
        )
        return [self._to_user(row) for row in rows]

    def count_users(self) -> int:
        row = self._pool.fetchone("SELECT COUNT(*) AS total FROM users")
        return int(row["total"]) if row else 0

    def delete_user(self, user_id: str) -> int:
        with self._pool.transaction("users") as cursor:
            cursor.execute("DELETE FROM users WHERE id = ?", (user_id,))
            return cursor.rowcount

    @staticmethod
    def _to_user(row: sqlite3.Row) -> User:
        return User(
            id=row["id"],
            email=row["email"],
            full_name=row["full_name"],
            role=row["role"],
            created_at=parse_datetime(row["created_at"], "user created_at"),
            phone_number=row["phone_number"] or "",
            created_by=row["created_by"] or "",
        )
