from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from threading import RLock
from typing import Dict, Generator, Iterable, Mapping, Optional

from .session import SessionStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Cols:
    table: str = "session"
    key: str = "key"
    value: str = "value"


_COLS = _Cols()


class SQLiteSessionStore(SessionStore):
    """
    Persistent session store backed by a single key/value table in a local SQLite file.

    Every sqlite or filesystem error is logged and swallowed: reads degrade to None and
    writes to a no-op, so callers fall back to "not authenticated" instead of crashing.

    Values read or written successfully are cached in memory, so the token lookup made
    before every request hits the file once per process. The cache only changes after a
    committed write.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._lock = RLock()
        self._cache: Dict[str, Optional[str]] = {}
        try:
            os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
            self._init_db()
        except (sqlite3.Error, OSError) as exc:
            logger.warning("Session store at %s unavailable: %s", db_path, exc)

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        conn = sqlite3.connect(self._db_path)
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_COLS.table} (
                    {_COLS.key} TEXT PRIMARY KEY,
                    {_COLS.value} TEXT NOT NULL
                )
                """
            )

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            if key in self._cache:
                return self._cache[key]
            try:
                with self._conn() as conn:
                    row = conn.execute(
                        f"SELECT {_COLS.value} FROM {_COLS.table} WHERE {_COLS.key} = ?", (key,)
                    ).fetchone()
            except (sqlite3.Error, OSError) as exc:
                logger.warning("Failed to read %r from session store: %s", key, exc)
                return None
            value = str(row[0]) if row else None
            self._cache[key] = value
            return value

    def set(self, key: str, value: str) -> None:
        self.set_many({key: value})

    def set_many(self, items: Mapping[str, str]) -> None:
        """Write every pair in one transaction; on failure nothing is written."""
        rows = list(items.items())
        if not rows:
            return
        with self._lock:
            try:
                with self._conn() as conn:
                    conn.executemany(
                        f"INSERT OR REPLACE INTO {_COLS.table} ({_COLS.key}, {_COLS.value}) VALUES (?, ?)",
                        rows,
                    )
            except (sqlite3.Error, OSError) as exc:
                logger.warning("Failed to write %s to session store: %s", sorted(items), exc)
                return
            self._cache.update(rows)

    def remove(self, keys: Iterable[str]) -> None:
        params = [(k,) for k in keys]
        if not params:
            return
        with self._lock:
            try:
                with self._conn() as conn:
                    conn.executemany(f"DELETE FROM {_COLS.table} WHERE {_COLS.key} = ?", params)
            except (sqlite3.Error, OSError) as exc:
                logger.warning("Failed to remove %s from session store: %s", sorted(k for (k,) in params), exc)
                return
            for (k,) in params:
                self._cache[k] = None
