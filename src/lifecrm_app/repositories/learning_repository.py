"""Learning content repository."""

from __future__ import annotations

import sqlite3

from lifecrm_app.models.learning import LearningContent
from lifecrm_app.repositories.codec import format_datetime, parse_datetime
from lifecrm_app.repositories.db_pool import ThreadLocalConnection


class LearningRepository:
    def __init__(self, pool: ThreadLocalConnection):
        self._pool = pool

    def create_content(self, content: LearningContent) -> None:
        with self._pool.transaction("learning_contents") as cursor:
            cursor.execute(
                """
                INSERT INTO learning_contents (
                    id,
                    title,
                    description,
                    content_type,
                    url,
                    body,
                    created_by,
                    created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    content.id,
                    content.title,
                    content.description,
                    content.content_type,
                    content.url,
                    content.body,
                    content.created_by,
                    format_datetime(content.created_at),
                ),
            )

    def list_contents(self, content_type: str | None = None) -> list[LearningContent]:
        """Newest first, optionally filtered by type."""
        if content_type:
            rows = self._pool.fetchall(
                """
                SELECT * FROM learning_contents
                WHERE content_type = ?
                ORDER BY created_at DESC, rowid DESC
                """,
                (content_type,),
            )
        else:
            rows = self._pool.fetchall(
                "SELECT * FROM learning_contents ORDER BY created_at DESC, rowid DESC"
            )
        return [self._to_content(row) for row in rows]

    def delete_content(self, content_id: str) -> int:
        with self._pool.transaction("learning_contents") as cursor:
            cursor.execute("DELETE FROM learning_contents WHERE id = ?", (content_id,))
            return cursor.rowcount

    @staticmethod
    def _to_content(row: sqlite3.Row) -> LearningContent:
        return LearningContent(
            id=row["id"],
            title=row["title"],
            description=row["description"],
            content_type=row["content_type"],
            created_at=parse_datetime(row["created_at"], "learning created_at"),
            url=row["url"] or "",
            body=row["body"] or "",
            created_by=row["created_by"] or "",
        )
