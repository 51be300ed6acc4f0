import sqlite3
import threading
from pathlib import Path
from typing import Optional

from ...domain.errors import StorageError
from ...domain.ports.persistence import KeyValueStore


class SQLiteKeyValueStore(KeyValueStore):
    """SQLite-backed implementation of the key-value store port."""

    def __init__(self, path: Path) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(path, check_same_thread=False)
        except (OSError, sqlite3.Error) as exc:
            raise StorageError(f"Unable to open database at {path}: {exc}") from exc
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        self._initialize()

    def _initialize(self) -> None:
        try:
            with self._lock, self._conn:
                self._conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS kv_store (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL
                    )
                    """
                )
        except sqlite3.Error as exc:
            raise StorageError(f"Unable to create key-value table: {exc}") from exc

    def close(self) -> None:
        self._conn.close()

    # KeyValueStore API -------------------------------------------------------
    def get(self, key: str) -> Optional[str]:
        try:
            with self._lock:
                cur = self._conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,))
                row = cur.fetchone()
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to read key {key}: {exc}") from exc
        return row["value"] if row else None

    def set(self, key: str, value: str) -> None:
        try:
            with self._lock, self._conn:
                self._conn.execute(
                    "INSERT INTO kv_store (key, value) VALUES (?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                    (key, value),
                )
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to write key {key}: {exc}") from exc

    def remove(self, key: str) -> None:
        try:
            with self._lock, self._conn:
                self._conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to remove key {key}: {exc}") from exc
