"""Durable key-value storage for client state (token, signed-in user)."""
from __future__ import annotations

import json
import sqlite3
from typing import Any, Optional

from config import settings


class KeyValueStorage:
    """String values keyed by name, kept in a small sqlite file.

    ``":memory:"`` keeps a single connection open so values survive between
    calls; a file path opens a connection per operation.
    """

    def __init__(self, path: str | None = None) -> None:
        self.path = path or settings.storage_path
        self._memory_conn: Optional[sqlite3.Connection] = None
        if self.path == ":memory:":
            self._memory_conn = sqlite3.connect(":memory:")
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        if self._memory_conn is not None:
            return self._memory_conn
        return sqlite3.connect(self.path)

    def _execute(self, sql: str, params: tuple = ()) -> list[tuple]:
        conn = self._connect()
        try:
            cursor = conn.cursor()
            cursor.execute(sql, params)
            rows = cursor.fetchall()
            conn.commit()
            return rows
        finally:
            if conn is not self._memory_conn:
                conn.close()

    def _init_db(self) -> None:
        self._execute(
            """
            CREATE TABLE IF NOT EXISTS kv(
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
            """
        )

    def get(self, key: str) -> Optional[str]:
        rows = self._execute("SELECT value FROM kv WHERE key=?", (key,))
        return rows[0][0] if rows else None

    def set(self, key: str, value: str) -> None:
        self._execute(
            "INSERT INTO kv(key, value) VALUES (?, ?) ON CONFLICT(key) DO UPDATE SET value=excluded.value",
            (key, value),
        )

    def remove(self, key: str) -> None:
        self._execute("DELETE FROM kv WHERE key=?", (key,))

    def get_json(self, key: str) -> Any:
        raw = self.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            return None

    def set_json(self, key: str, value: Any) -> None:
        self.set(key, json.dumps(value))
