"""Database schema management."""

from __future__ import annotations

from lifecrm_app.repositories.db_pool import ThreadLocalConnection

# Dates and timestamps are ISO-8601 text written by the application in
# device-local time; repositories parse them back before returning records.
TABLES = (
    """
    CREATE TABLE IF NOT EXISTS customers (
        id TEXT PRIMARY KEY,
        full_name TEXT NOT NULL,
        phone_encrypted BLOB NOT NULL,
        phone_hash TEXT NOT NULL UNIQUE,
        date_of_birth TEXT NOT NULL,
        classification TEXT NOT NULL,
        address_json TEXT NOT NULL DEFAULT '{}',
        occupation TEXT NOT NULL DEFAULT '',
        financial_status_encrypted BLOB,
        family_info TEXT NOT NULL DEFAULT '',
        created_by TEXT NOT NULL DEFAULT '',
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS insurance_contracts (
        id TEXT PRIMARY KEY,
        customer_id TEXT NOT NULL,
        company TEXT NOT NULL,
        contract_number TEXT NOT NULL UNIQUE,
        policy_details TEXT NOT NULL DEFAULT '',
        join_date TEXT NOT NULL,
        premium_amount TEXT NOT NULL DEFAULT '0',
        payment_frequency TEXT NOT NULL,
        next_payment_date TEXT NOT NULL,
        FOREIGN KEY (customer_id) REFERENCES customers(id) ON DELETE CASCADE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS meeting_records (
        id TEXT PRIMARY KEY,
        customer_id TEXT NOT NULL,
        date TEXT NOT NULL,
        notes TEXT NOT NULL,
        created_at TEXT NOT NULL,
        FOREIGN KEY (customer_id) REFERENCES customers(id) ON DELETE CASCADE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS users (
        id TEXT PRIMARY KEY,
        email TEXT NOT NULL UNIQUE,
        full_name TEXT NOT NULL,
        role TEXT NOT NULL,
        phone_number TEXT NOT NULL DEFAULT '',
        password_hash TEXT NOT NULL,
        created_by TEXT NOT NULL DEFAULT '',
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS learning_contents (
        id TEXT PRIMARY KEY,
        title TEXT NOT NULL,
        description TEXT NOT NULL,
        content_type TEXT NOT NULL,
        url TEXT NOT NULL DEFAULT '',
        body TEXT NOT NULL DEFAULT '',
        created_by TEXT NOT NULL DEFAULT '',
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS audit_logs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        action TEXT NOT NULL,
        entity TEXT NOT NULL,
        entity_id TEXT,
        actor_id TEXT,
        detail TEXT,
        created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """,
)

INDEXES = (
    "CREATE INDEX IF NOT EXISTS idx_customers_name ON customers(full_name)",
    "CREATE INDEX IF NOT EXISTS idx_contracts_customer ON insurance_contracts(customer_id)",
    "CREATE INDEX IF NOT EXISTS idx_meetings_customer ON meeting_records(customer_id)",
    "CREATE INDEX IF NOT EXISTS idx_learning_created_at ON learning_contents(created_at)",
    "CREATE INDEX IF NOT EXISTS idx_audit_logs_created_at ON audit_logs(created_at)",
)


def initialize_schema(pool: ThreadLocalConnection) -> None:
    """Create required tables and indexes if they do not exist."""
    for statement in TABLES + INDEXES:
        pool.execute(statement)
