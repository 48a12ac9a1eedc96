"""Thread-local SQLite connections and per-entity write locks."""

from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from lifecrm_app.core.config import AppConfig


class ThreadLocalConnection:
    """Maintain one DB connection per thread and serialize writes per entity type."""

    def __init__(self, config: AppConfig):
        self._config = config
        self._local = threading.local()
        self._locks: dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    def _open_connection(self) -> sqlite3.Connection:
        db_path = Path(self._config.database.path)
        db_path.parent.mkdir(parents=True, exist_ok=True)
        connection = sqlite3.connect(str(db_path), check_same_thread=False)
        connection.execute("PRAGMA foreign_keys = ON")
        connection.row_factory = sqlite3.Row
        return connection

    def get_connection(self) -> sqlite3.Connection:
        """Return current thread's connection, creating it when needed."""
        connection = getattr(self._local, "connection", None)
        if connection is None:
            connection = self._open_connection()
            self._local.connection = connection
        return connection

    def close_connection(self) -> None:
        """Close current thread's connection."""
        connection = getattr(self._local, "connection", None)
        if connection is not None:
            connection.close()
            self._local.connection = None

    def write_lock(self, entity: str) -> threading.RLock:
        """Return the single lock that guards all writes to ``entity``."""
        with self._locks_guard:
            lock = self._locks.get(entity)
            if lock is None:
                lock = threading.RLock()
                self._locks[entity] = lock
            return lock

    @contextmanager
    def transaction(self, entity: str) -> Iterator[sqlite3.Cursor]:
        """Run several statements atomically while holding the entity lock."""
        connection = self.get_connection()
        with self.write_lock(entity):
            cursor = connection.cursor()
            try:
                yield cursor
            except Exception:
                connection.rollback()
                raise
            connection.commit()

    @contextmanager
    def read_snapshot(self, entity: str) -> Iterator[sqlite3.Connection]:
        """Hold the entity lock and one read transaction across several SELECTs."""
        connection = self.get_connection()
        with self.write_lock(entity):
            owns_transaction = not connection.in_transaction
            if owns_transaction:
                connection.execute("BEGIN")
            try:
                yield connection
            finally:
                if owns_transaction:
                    connection.commit()

    def execute(self, query: str, params: tuple[Any, ...] = ()) -> sqlite3.Cursor:
        """Execute a query and commit the transaction."""
        connection = self.get_connection()
        cursor = connection.cursor()
        cursor.execute(query, params)
        connection.commit()
        return cursor

    def fetchall(self, query: str, params: tuple[Any, ...] = ()) -> list[sqlite3.Row]:
        """Fetch all rows for a query."""
        return self.get_connection().execute(query, params).fetchall()

    def fetchone(self, query: str, params: tuple[Any, ...] = ()) -> sqlite3.Row | None:
        """Fetch first row for a query."""
        return self.get_connection().execute(query, params).fetchone()
