"""
SQLite foundation for the shared key-value store.
"""

import sqlite3
from contextlib import contextmanager
from typing import Generator

from .config import DB_PATH, STORE_BUSY_TIMEOUT_MS, ensure_db_directory


@contextmanager
def get_db(db_path: str = None, busy_timeout_ms: int = STORE_BUSY_TIMEOUT_MS) -> Generator[sqlite3.Connection, None, None]:
    """Get a SQLite database connection; commits on success, rolls back on error."""
    conn = sqlite3.connect(db_path or DB_PATH, timeout=busy_timeout_ms / 1000)
    conn.execute(f"PRAGMA busy_timeout={busy_timeout_ms}")
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def init_db(db_path: str = None):
    """Initialize the database with required tables. Idempotent."""
    db_path = db_path or DB_PATH
    ensure_db_directory(db_path)

    with get_db(db_path) as conn:
        conn.execute("PRAGMA journal_mode=WAL")
        cursor = conn.cursor()

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS kv (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                origin TEXT,
                updated_at TEXT
            )
        ''')

        # Append-only log of mutations; key is NULL when the whole store was cleared
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS kv_changes (
                seq INTEGER PRIMARY KEY AUTOINCREMENT,
                key TEXT,
                value TEXT,
                origin TEXT NOT NULL,
                changed_at TEXT NOT NULL
            )
        ''')

        cursor.execute('CREATE INDEX IF NOT EXISTS idx_kv_changes_changed_at ON kv_changes(changed_at)')


def health_check(db_path: str = None):
    """Check database health."""
    try:
        with get_db(db_path) as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT name FROM sqlite_master WHERE type='table';")
            tables = cursor.fetchall()

            table_names = [table[0] for table in tables]
            required_tables = ['kv', 'kv_changes']

            return all(table in table_names for table in required_tables)
    except sqlite3.Error:
        return False
