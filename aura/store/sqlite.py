"""
SQLite storage backend.

Uses aiosqlite for async SQLite access.
WAL mode enabled so a second client process can read while one writes.
"""

from __future__ import annotations

import logging
from pathlib import Path

import aiosqlite

from aura.core.errors import StorageError
from aura.store.base import StorageProvider

logger = logging.getLogger(__name__)


class SQLiteStorage(StorageProvider):
    """
    SQLite-based key-value storage.

    Usage:
        storage = SQLiteStorage("~/.aura/agent_tasks.db")
        await storage.initialize()

        await storage.set("aura_agent_tasks", b"[]")
        value = await storage.get("aura_agent_tasks")  # b"[]"
    """

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = Path(db_path).expanduser()
        self._db: aiosqlite.Connection | None = None

    async def initialize(self) -> None:
        """Open the database and create the kv table."""
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._db = await aiosqlite.connect(str(self._db_path))

            await self._db.execute("PRAGMA journal_mode=WAL")
            await self._db.execute("PRAGMA synchronous=NORMAL")

            await self._db.execute(
                """
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value BLOB NOT NULL,
                    updated_at REAL NOT NULL DEFAULT (strftime('%s', 'now'))
                )
                """
            )
            await self._db.commit()
            logger.debug(f"SQLite storage initialized at {self._db_path}")

        except Exception as e:
            raise StorageError(f"Failed to initialize SQLite at {self._db_path}: {e}") from e

    async def _ensure_db(self) -> aiosqlite.Connection:
        """Ensure database is initialized."""
        if self._db is None:
            await self.initialize()
        return self._db  # type: ignore[return-value]

    async def get(self, key: str) -> bytes | None:
        db = await self._ensure_db()
        try:
            async with db.execute(
                "SELECT value FROM kv WHERE key = ?", (key,)
            ) as cursor:
                row = await cursor.fetchone()
                return row[0] if row else None
        except Exception as e:
            raise StorageError(f"Failed to get key '{key}': {e}") from e

    async def set(self, key: str, value: bytes) -> None:
        db = await self._ensure_db()
        try:
            await db.execute(
                """
                INSERT INTO kv (key, value, updated_at) VALUES (?, ?, strftime('%s', 'now'))
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = strftime('%s', 'now')
                """,
                (key, value),
            )
            await db.commit()
        except Exception as e:
            raise StorageError(f"Failed to set key '{key}': {e}") from e

    async def delete(self, key: str) -> bool:
        db = await self._ensure_db()
        try:
            cursor = await db.execute("DELETE FROM kv WHERE key = ?", (key,))
            await db.commit()
            return cursor.rowcount > 0
        except Exception as e:
            raise StorageError(f"Failed to delete key '{key}': {e}") from e

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None
