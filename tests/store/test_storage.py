"""Tests for storage backends."""

import pytest

from aura.core.errors import StorageError
from aura.store.memory import InMemoryStorage
from aura.store.sqlite import SQLiteStorage


# ━━━ In-Memory Storage Tests ━━━


@pytest.mark.asyncio
async def test_memory_set_and_get():
    store = InMemoryStorage()
    await store.set("key1", b"value1")
    assert await store.get("key1") == b"value1"
    await store.close()


@pytest.mark.asyncio
async def test_memory_get_missing():
    store = InMemoryStorage()
    assert await store.get("nonexistent") is None


@pytest.mark.asyncio
async def test_memory_overwrite():
    store = InMemoryStorage()
    await store.set("key", b"old")
    await store.set("key", b"new")
    assert await store.get("key") == b"new"


@pytest.mark.asyncio
async def test_memory_delete():
    store = InMemoryStorage()
    await store.set("key", b"value")
    assert await store.delete("key") is True
    assert await store.get("key") is None
    assert await store.delete("key") is False


# ━━━ SQLite Storage Tests ━━━


@pytest.mark.asyncio
async def test_sqlite_set_and_get(tmp_path):
    store = SQLiteStorage(tmp_path / "test.db")
    await store.initialize()
    await store.set("aura_agent_tasks", b"[]")
    assert await store.get("aura_agent_tasks") == b"[]"
    await store.close()


@pytest.mark.asyncio
async def test_sqlite_initializes_lazily(tmp_path):
    store = SQLiteStorage(tmp_path / "nested" / "lazy.db")
    assert await store.get("missing") is None
    assert (tmp_path / "nested" / "lazy.db").exists()
    await store.close()


@pytest.mark.asyncio
async def test_sqlite_overwrite_and_delete(tmp_path):
    store = SQLiteStorage(tmp_path / "test.db")
    await store.set("key", b"old")
    await store.set("key", b"new")
    assert await store.get("key") == b"new"
    assert await store.delete("key") is True
    assert await store.delete("key") is False
    assert await store.get("key") is None
    await store.close()


@pytest.mark.asyncio
async def test_sqlite_persists_across_connections(tmp_path):
    db_path = tmp_path / "persist.db"

    store1 = SQLiteStorage(db_path)
    await store1.set("persistent", b"data")
    await store1.close()

    store2 = SQLiteStorage(db_path)
    assert await store2.get("persistent") == b"data"
    await store2.close()


@pytest.mark.asyncio
async def test_sqlite_unusable_path_raises_storage_error(tmp_path):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("file in the way")
    store = SQLiteStorage(blocker / "tasks.db")
    with pytest.raises(StorageError):
        await store.get("anything")
