"""Shared fixtures: an in-memory stand-in for the Telegram Bot API client."""
from collections import defaultdict
from typing import Any, Dict, List, Optional, Tuple

import pytest

from subscribe_board.board.store import MemoryStateStore
from subscribe_board.telegram.errors import TelegramApiError


class FakeTelegramClient:
    """Records every call; ``fail()`` queues Telegram rejections per method."""

    def __init__(self, pinned: Optional[Dict[str, Any]] = None):
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self.pinned = pinned
        self.failures: Dict[str, List[Exception]] = defaultdict(list)
        self._next_id = 100

    def fail(self, method: str, *descriptions: str) -> None:
        for description in descriptions:
            self.failures[method].append(TelegramApiError(description, method))

    def methods(self) -> List[str]:
        return [method for method, _ in self.calls]

    def last(self, method: str) -> Dict[str, Any]:
        return [kwargs for m, kwargs in self.calls if m == method][-1]

    def _record(self, method: str, **kwargs: Any) -> None:
        self.calls.append((method, kwargs))
        queued = self.failures.get(method)
        if queued:
            raise queued.pop(0)

    def _new_id(self) -> int:
        self._next_id += 1
        return self._next_id

    async def send_text(self, text):
        self._record("sendMessage", text=text)
        return self._new_id()

    async def send_photo(self, photo, caption):
        self._record("sendPhoto", photo=photo, caption=caption)
        return self._new_id()

    async def edit_text(self, message_id, text):
        self._record("editMessageText", message_id=message_id, text=text)

    async def edit_caption(self, message_id, caption):
        self._record("editMessageCaption", message_id=message_id, caption=caption)

    async def edit_media(self, message_id, photo, caption):
        self._record("editMessageMedia", message_id=message_id, photo=photo, caption=caption)

    async def pin(self, message_id):
        self._record("pinChatMessage", message_id=message_id)

    async def unpin(self, message_id):
        self._record("unpinChatMessage", message_id=message_id)

    async def get_pinned_message(self):
        self._record("getChat")
        return self.pinned


@pytest.fixture
def fake_client():
    return FakeTelegramClient()


@pytest.fixture
def memory_store():
    return MemoryStateStore()
