"""
LocalStorage: durable, process-local key-value slots on SQLite + WAL mode.
"""

import sqlite3
from pathlib import Path
from typing import Optional
from contextlib import contextmanager

from edulog.shared.config import settings
from edulog.shared.exceptions import StorageError
from edulog.shared.logging import get_logger

logger = get_logger(__name__)

SHEET_URL_KEY = "edulog_sheet_url"
RECORDS_KEY = "edulog_records"


class LocalStorage:
    """String slots keyed by name; every write is committed before returning."""

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = Path(db_path or settings.storage_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_database()

    def _init_database(self):
        """Initialize database schema."""
        with self._get_connection() as conn:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("""
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

    @contextmanager
    def _get_connection(self):
        """Get database connection with proper error handling."""
        try:
            conn = sqlite3.connect(str(self.db_path), timeout=30.0)
        except sqlite3.Error as e:
            raise StorageError(f"Cannot open local storage at {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StorageError(f"Local storage operation failed: {e}") from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def get(self, key: str) -> Optional[str]:
        """Return the slot's value, or None if it was never written."""
        with self._get_connection() as conn:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
            return row["value"] if row else None

    def set(self, key: str, value: str):
        """Overwrite the slot with value."""
        with self._get_connection() as conn:
            conn.execute(
                """INSERT INTO kv (key, value, updated_at) VALUES (?, ?, CURRENT_TIMESTAMP)
                   ON CONFLICT(key) DO UPDATE SET value = excluded.value,
                                                  updated_at = excluded.updated_at""",
                (key, value)
            )
        logger.debug(f"Slot written: {key} ({len(value)} chars)")

    def remove(self, key: str):
        """Delete the slot if present."""
        with self._get_connection() as conn:
            conn.execute("DELETE FROM kv WHERE key = ?", (key,))
