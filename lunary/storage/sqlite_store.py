"""SQLite-backed flat key-value store for the fallback backend."""

from __future__ import annotations

import sqlite3
import time
from collections.abc import Callable
from contextlib import closing
from pathlib import Path

from lunary.utils.mixins import LoggerMixin

DEFAULT_DB_NAME = "fallback.sqlite3"

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;

CREATE TABLE IF NOT EXISTS kv (
  key TEXT PRIMARY KEY,
  value TEXT NOT NULL,
  updated_at INTEGER NOT NULL
);
"""


def open_db(db_path: str | Path) -> sqlite3.Connection:
    p = Path(db_path)
    p.parent.mkdir(parents=True, exist_ok=True)
    con = sqlite3.connect(str(p))
    con.executescript(SCHEMA_SQL)
    return con


def now_ts() -> int:
    return int(time.time())


class SqliteKeyValueStore(LoggerMixin):
    """Durable localStorage-like store: one ``kv`` table in the app data dir.

    A connection is opened per call so the store can be used from worker
    threads as well as the event loop thread.
    """

    log_context = {"store": "sqlite"}

    def __init__(
        self,
        db_path: Path | None = None,
        resolve_data_dir: Callable[[], Path] | None = None,
    ) -> None:
        if db_path is None and resolve_data_dir is None:
            from lunary.config import get_settings

            resolve_data_dir = get_settings().resolve_data_dir
        self._db_path = db_path
        self._resolve_data_dir = resolve_data_dir

    @property
    def db_path(self) -> Path:
        if self._db_path is not None:
            return self._db_path
        assert self._resolve_data_dir is not None
        return self._resolve_data_dir() / DEFAULT_DB_NAME

    def get_item(self, key: str) -> str | None:
        with closing(open_db(self.db_path)) as con:
            row = con.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        return None if row is None else row[0]

    def set_item(self, key: str, value: str) -> None:
        with closing(open_db(self.db_path)) as con, con:
            con.execute(
                "INSERT INTO kv (key, value, updated_at) VALUES (?, ?, ?) "
                "ON CONFLICT(key) DO UPDATE SET "
                "value = excluded.value, updated_at = excluded.updated_at",
                (key, value, now_ts()),
            )
        self.logger.debug("Key stored", key=key)

    def remove_item(self, key: str) -> None:
        with closing(open_db(self.db_path)) as con, con:
            con.execute("DELETE FROM kv WHERE key = ?", (key,))

    def keys(self) -> list[str]:
        with closing(open_db(self.db_path)) as con:
            rows = con.execute("SELECT key FROM kv ORDER BY key").fetchall()
        return [row[0] for row in rows]
