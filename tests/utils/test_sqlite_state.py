import json

import pytest

from subscribe_board.board.store import MemoryStateStore, SqliteStateStore
from subscribe_board.utils.SqliteHandler import SqliteHandler


def test_get_missing_key(tmp_path):
    db = SqliteHandler(str(tmp_path / "state.db"))

    assert db.get("-100") is None
    db.close()

def test_put_then_get(tmp_path):
    db = SqliteHandler(str(tmp_path / "state.db"))

    db.put("-100", '{"dateKey": "2025-01-06"}')

    assert json.loads(db.get("-100")) == {"dateKey": "2025-01-06"}
    db.close()

def test_put_overwrites(tmp_path):
    db = SqliteHandler(str(tmp_path / "state.db"))

    db.put("-100", "first")
    db.put("-100", "second")
    db.put("-200", "other")

    assert db.get("-100") == "second"
    assert db.get("-200") == "other"
    db.close()

def test_persists_across_handlers(tmp_path):
    path = str(tmp_path / "nested" / "state.db")
    first = SqliteHandler(path)
    first.put("k", "v")
    first.close()

    second = SqliteHandler(path)
    assert second.get("k") == "v"
    second.close()

@pytest.mark.asyncio
async def test_sqlite_state_store(tmp_path):
    store = SqliteStateStore(str(tmp_path / "state.db"))

    assert await store.get("chat") is None
    await store.put("chat", "blob")
    assert await store.get("chat") == "blob"

@pytest.mark.asyncio
async def test_memory_state_store():
    store = MemoryStateStore({"a": "1"})

    await store.put("b", "2")

    assert await store.get("a") == "1"
    assert await store.get("b") == "2"
    assert await store.get("c") is None
    assert store.blobs == {"a": "1", "b": "2"}
