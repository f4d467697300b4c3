"""
Shared key-value store.

Many execution contexts (processes, threads, or separate KVStore instances)
may open the same database file. Every mutation is appended to the change
log with the writing context's id, and poll_changes() only reports changes
made by other contexts, the way a browser storage event never fires in the
tab that made the write.
"""

import sqlite3
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from .config import DB_PATH, STORE_BUSY_TIMEOUT_MS, get_store_quota_bytes
from .db import get_db, init_db


class StoreError(Exception):
    """Raised when the underlying store cannot complete an operation."""
    pass


class QuotaExceededError(StoreError):
    """Raised when a write would push the store past its capacity."""
    pass


@dataclass(frozen=True)
class StorageEvent:
    """A mutation made by another context. key is None when the store was cleared."""
    seq: int
    key: Optional[str]
    new_value: Optional[str]
    origin: str
    changed_at: str


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class KVStore:
    """One context's view of the shared SQLite key-value store."""

    def __init__(self, db_path: str = None, context_id: str = None, quota_bytes: Optional[int] = None,
                 busy_timeout_ms: int = STORE_BUSY_TIMEOUT_MS):
        self.db_path = db_path or DB_PATH
        self.context_id = context_id or uuid.uuid4().hex[:12]
        # None means "use configuration", 0 means unlimited
        if quota_bytes is None:
            self.quota_bytes = get_store_quota_bytes()
        else:
            self.quota_bytes = quota_bytes or None
        self.busy_timeout_ms = busy_timeout_ms
        self._cursor_lock = threading.Lock()

        try:
            init_db(self.db_path)
        except sqlite3.Error as e:
            raise StoreError(f"Cannot open store at {self.db_path}: {e}") from e

        self._cursor = self._head_seq()

    def __repr__(self):
        return f"KVStore(db_path={self.db_path!r}, context_id={self.context_id!r})"

    def _connect(self):
        return get_db(self.db_path, self.busy_timeout_ms)

    def _record_change(self, conn, key: Optional[str], value: Optional[str]):
        conn.execute(
            "INSERT INTO kv_changes (key, value, origin, changed_at) VALUES (?, ?, ?, ?)",
            (key, value, self.context_id, _now())
        )

    def _head_seq(self) -> int:
        try:
            with self._connect() as conn:
                row = conn.execute("SELECT COALESCE(MAX(seq), 0) FROM kv_changes").fetchone()
                return row[0]
        except sqlite3.Error as e:
            raise StoreError(f"Cannot read change log: {e}") from e

    def get_item(self, key: str) -> Optional[str]:
        """Return the raw text stored under key, or None when absent."""
        try:
            with self._connect() as conn:
                row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
                return row[0] if row else None
        except sqlite3.Error as e:
            raise StoreError(f"Read of '{key}' failed: {e}") from e

    def set_item(self, key: str, value: str):
        """Store raw text under key, replacing any existing value."""
        if not isinstance(value, str):
            raise TypeError(f"Store values must be text, got {type(value).__name__}")

        try:
            with self._connect() as conn:
                if self.quota_bytes is not None:
                    row = conn.execute(
                        "SELECT COALESCE(SUM(LENGTH(key) + LENGTH(value)), 0) FROM kv WHERE key != ?",
                        (key,)
                    ).fetchone()
                    needed = row[0] + len(key) + len(value)
                    if needed > self.quota_bytes:
                        raise QuotaExceededError(
                            f"Writing '{key}' needs {needed} bytes, quota is {self.quota_bytes}"
                        )

                conn.execute(
                    "INSERT OR REPLACE INTO kv (key, value, origin, updated_at) VALUES (?, ?, ?, ?)",
                    (key, value, self.context_id, _now())
                )
                self._record_change(conn, key, value)
        except sqlite3.Error as e:
            raise StoreError(f"Write of '{key}' failed: {e}") from e

    def remove_item(self, key: str) -> bool:
        """Delete key. Returns True if something was removed."""
        try:
            with self._connect() as conn:
                cursor = conn.execute("DELETE FROM kv WHERE key = ?", (key,))
                if cursor.rowcount:
                    self._record_change(conn, key, None)
                return cursor.rowcount > 0
        except sqlite3.Error as e:
            raise StoreError(f"Delete of '{key}' failed: {e}") from e

    def clear(self):
        """Remove every key."""
        try:
            with self._connect() as conn:
                conn.execute("DELETE FROM kv")
                self._record_change(conn, None, None)
        except sqlite3.Error as e:
            raise StoreError(f"Clear failed: {e}") from e

    def keys(self) -> List[str]:
        try:
            with self._connect() as conn:
                return [row[0] for row in conn.execute("SELECT key FROM kv ORDER BY key")]
        except sqlite3.Error as e:
            raise StoreError(f"Listing keys failed: {e}") from e

    def used_bytes(self) -> int:
        try:
            with self._connect() as conn:
                row = conn.execute("SELECT COALESCE(SUM(LENGTH(key) + LENGTH(value)), 0) FROM kv").fetchone()
                return row[0]
        except sqlite3.Error as e:
            raise StoreError(f"Usage query failed: {e}") from e

    def poll_changes(self) -> List[StorageEvent]:
        """
        Return mutations made by other contexts since the last poll.

        The cursor advances past this context's own writes too, so they are
        never reported.
        """
        with self._cursor_lock:
            try:
                with self._connect() as conn:
                    rows = conn.execute(
                        "SELECT seq, key, value, origin, changed_at FROM kv_changes WHERE seq > ? ORDER BY seq",
                        (self._cursor,)
                    ).fetchall()
            except sqlite3.Error as e:
                raise StoreError(f"Polling change log failed: {e}") from e

            if rows:
                self._cursor = rows[-1][0]

        return [
            StorageEvent(seq=seq, key=key, new_value=value, origin=origin, changed_at=changed_at)
            for seq, key, value, origin, changed_at in rows
            if origin != self.context_id
        ]

    def mark_seen(self):
        """Skip every change recorded so far."""
        with self._cursor_lock:
            self._cursor = self._head_seq()

    def prune_changes(self, max_age_sec: int) -> int:
        """Delete change log entries older than max_age_sec. Returns rows deleted."""
        cutoff = (datetime.now(timezone.utc) - timedelta(seconds=max_age_sec)).isoformat()
        try:
            with self._connect() as conn:
                cursor = conn.execute("DELETE FROM kv_changes WHERE changed_at < ?", (cutoff,))
                return cursor.rowcount
        except sqlite3.Error as e:
            raise StoreError(f"Pruning change log failed: {e}") from e
