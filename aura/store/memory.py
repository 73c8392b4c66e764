"""
In-memory storage backend.

Stands in for SQLiteStorage wherever nothing should touch disk: the test
suite, and sessions built with an explicit `storage=` (for example an
embedding app that persists tasks itself). Data is lost when the process
exits.
"""

from __future__ import annotations

from aura.store.base import StorageProvider


class InMemoryStorage(StorageProvider):
    """
    Dict-backed key-value store.

    Usage:
        session = AgentTaskSession.from_config(config, storage=InMemoryStorage())

        storage = InMemoryStorage()
        await storage.set("aura_agent_tasks", b"[]")
        assert await storage.get("aura_agent_tasks") == b"[]"
    """

    def __init__(self) -> None:
        self._data: dict[str, bytes] = {}

    async def get(self, key: str) -> bytes | None:
        return self._data.get(key)

    async def set(self, key: str, value: bytes) -> None:
        self._data[key] = value

    async def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    async def close(self) -> None:
        self._data.clear()
