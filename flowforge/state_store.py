from __future__ import annotations

from datetime import datetime, timezone
import json
import logging
from pathlib import Path
import sqlite3
import threading
from typing import Any


logger = logging.getLogger(__name__)


class KeyValueStore:
    """JSON values by string key, persisted in a single sqlite table.

    ``set`` replaces the whole value for a key in one statement, so a
    collection written back after a change is swapped atomically.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._lock = threading.Lock()
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._connection = sqlite3.connect(db_path, check_same_thread=False)
        self._connection.row_factory = sqlite3.Row
        self._configure_pragmas()
        self._ensure_schema()

    def _configure_pragmas(self) -> None:
        with self._lock:
            cursor = self._connection.cursor()
            try:
                cursor.execute("PRAGMA journal_mode=WAL;")
                cursor.execute("PRAGMA synchronous=NORMAL;")
                cursor.execute("PRAGMA busy_timeout=5000;")
            except sqlite3.Error:
                logger.warning(
                    "failed to configure sqlite pragmas",
                    extra={"event": "sqlite_pragmas_error"},
                    exc_info=True,
                )

    def _ensure_schema(self) -> None:
        with self._lock:
            cursor = self._connection.cursor()
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS kv_state (
                    state_key TEXT PRIMARY KEY,
                    state_value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            self._connection.commit()

    def close(self) -> None:
        with self._lock:
            try:
                self._connection.close()
            except sqlite3.Error:
                logger.warning(
                    "failed to close sqlite connection",
                    extra={"event": "sqlite_close_error"},
                    exc_info=True,
                )

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            row = self._connection.execute(
                "SELECT state_value FROM kv_state WHERE state_key = ?",
                (key,),
            ).fetchone()
        if row is None:
            return default
        try:
            return json.loads(row["state_value"])
        except json.JSONDecodeError:
            logger.warning(
                "stored value is not valid json",
                extra={"event": "kv_decode_error", "state_key": key},
            )
            return default

    def set(self, key: str, value: Any) -> bool:
        try:
            encoded = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError):
            logger.warning(
                "value is not json serializable",
                extra={"event": "kv_encode_error", "state_key": key},
                exc_info=True,
            )
            return False
        now_iso = datetime.now(timezone.utc).isoformat()
        with self._lock:
            try:
                self._connection.execute(
                    """
                    INSERT INTO kv_state (state_key, state_value, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(state_key) DO UPDATE SET
                        state_value=excluded.state_value,
                        updated_at=excluded.updated_at
                    """,
                    (key, encoded, now_iso),
                )
                self._connection.commit()
            except sqlite3.Error:
                logger.warning(
                    "failed to write state",
                    extra={"event": "kv_write_error", "state_key": key},
                    exc_info=True,
                )
                return False
        return True
