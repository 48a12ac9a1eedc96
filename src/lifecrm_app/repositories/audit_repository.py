"""Audit log repository."""

from __future__ import annotations

from typing import Any

from lifecrm_app.repositories.db_pool import ThreadLocalConnection


class AuditRepository:
    """Persists and lists the mutation audit trail."""

    def __init__(self, pool: ThreadLocalConnection):
        self._pool = pool

    def add_log(
        self,
        action: str,
        entity: str,
        entity_id: str | None,
        detail: str,
        actor_id: str | None = None,
    ) -> None:
        """Insert an audit log record."""
        with self._pool.write_lock("audit_logs"):
            self._pool.execute(
                """
                INSERT INTO audit_logs (action, entity, entity_id, actor_id, detail)
                VALUES (?, ?, ?, ?, ?)
                """,
                (action, entity, entity_id, actor_id, detail),
            )

    def cleanup_old_logs(self, retention_days: int) -> int:
        """Delete logs older than retention_days and return removed row count."""
        with self._pool.write_lock("audit_logs"):
            cursor = self._pool.execute(
                "DELETE FROM audit_logs WHERE created_at < datetime('now', ?)",
                (f"-{retention_days} days",),
            )
            return cursor.rowcount

    def list_logs(
        self,
        limit: int = 200,
        entity: str | None = None,
        entity_id: str | None = None,
    ) -> list[dict[str, Any]]:
        """List newest audit logs, optionally for one entity."""
        where_clauses: list[str] = []
        params: list[Any] = []
        if entity:
            where_clauses.append("entity = ?")
            params.append(entity)
        if entity_id:
            where_clauses.append("entity_id = ?")
            params.append(entity_id)
        where_sql = f"WHERE {' AND '.join(where_clauses)}" if where_clauses else ""

        rows = self._pool.fetchall(
            f"""
            SELECT id, action, entity, entity_id, actor_id, detail, created_at
            FROM audit_logs
            {where_sql}
            ORDER BY id DESC
            LIMIT ?
            """,
            tuple(params + [limit]),
        )
        return [dict(row) for row in rows]
