"""SQLite-backed cache for upstream GitHub responses.

While working on the suggestion logic it is important not to hit GitHub on
every run: the reload cycle gets slow and the token gets rate limited. With
caching enabled, each response is computed once per key and then served from
disk. Only raw upstream payloads are stored, never parsed results.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)

DDL = """
CREATE TABLE IF NOT EXISTS responses (
    key        TEXT PRIMARY KEY,
    value_json TEXT NOT NULL,
    created_at TEXT NOT NULL
);
"""


class CacheError(Exception):
    pass


def cache_key(raw: str) -> str:
    """Normalize a URL-ish string into a safe cache key."""
    return re.sub(r"[^a-zA-Z0-9\-_.]", "-", raw)


class NullCache:
    """Pass-through used when caching is disabled."""

    async def get_or_compute(self, key: str, compute: Callable[[], Awaitable[Any]]) -> Any:
        return await compute()

    def close(self) -> None:
        pass


class ResponseCache:
    """Thin wrapper around sqlite3 storing JSON-encoded responses by key."""

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(str(self.db_path))
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA journal_mode=WAL")
        self._locks: dict[str, asyncio.Lock] = {}

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def init_schema(self) -> None:
        self.conn.executescript(DDL)
        self.conn.commit()

    def close(self) -> None:
        self.conn.close()

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    async def get_or_compute(self, key: str, compute: Callable[[], Awaitable[Any]]) -> Any:
        """Return the cached value for ``key``, computing and storing it on a miss.

        Concurrent callers for the same key wait on a per-key lock, so
        ``compute`` runs at most once per key for the life of the store. The
        lock is dropped once the value is stored; later callers read the row.
        """
        key = cache_key(key)
        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            row = self.conn.execute(
                "SELECT value_json FROM responses WHERE key=?", (key,)
            ).fetchone()
            if row is not None:
                logger.debug("Cache hit: %s", key)
                self._locks.pop(key, None)
                try:
                    return json.loads(row["value_json"])
                except json.JSONDecodeError as e:
                    raise CacheError(f"Corrupt cache entry for {key}") from e

            logger.debug("Cache miss: %s", key)
            value = await compute()
            self.conn.execute(
                "INSERT OR REPLACE INTO responses(key, value_json, created_at) VALUES (?, ?, ?)",
                (key, json.dumps(value), datetime.now(tz=timezone.utc).isoformat()),
            )
            self.conn.commit()
            self._locks.pop(key, None)
            return value

    def keys(self) -> list[str]:
        rows = self.conn.execute("SELECT key FROM responses ORDER BY key").fetchall()
        return [r["key"] for r in rows]

    def clear(self) -> int:
        """Delete every cached response; return how many were removed."""
        cur = self.conn.execute("DELETE FROM responses")
        self.conn.commit()
        return cur.rowcount
