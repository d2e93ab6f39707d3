from __future__ import annotations

import asyncio
from typing import Dict, Optional, Protocol

from ..utils.SqliteHandler import SqliteHandler


class StateStore(Protocol):
    """Opaque blob store, one blob per actor key."""

    async def get(self, key: str) -> Optional[str]:
        ...

    async def put(self, key: str, blob: str) -> None:
        ...


class SqliteStateStore:
    """Runs ``SqliteHandler`` calls in a worker thread."""

    def __init__(self, db_path: str):
        self._db = SqliteHandler(db_path)

    async def get(self, key: str) -> Optional[str]:
        return await asyncio.to_thread(self._db.get, key)

    async def put(self, key: str, blob: str) -> None:
        await asyncio.to_thread(self._db.put, key, blob)


class MemoryStateStore:
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.blobs: Dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self.blobs.get(key)

    async def put(self, key: str, blob: str) -> None:
        self.blobs[key] = blob
