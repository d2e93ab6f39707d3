import json

import aiohttp
import pytest

from subscribe_board.telegram.errors import TelegramApiError, TelegramErrorKind
from subscribe_board.telegram.notifier import TelegramBotClient


class _Response:
    def __init__(self, body, status=200):
        self._body = body if isinstance(body, str) else json.dumps(body)
        self.status = status

    async def text(self):
        return self._body

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class _Session:
    """Replays scripted Bot API responses and remembers the requests."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []
        self.closed = False

    def post(self, url, json=None):
        self.requests.append((url, json))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    async def close(self):
        self.closed = True


def make_client(*responses):
    client = TelegramBotClient("123:abc", "-100", timeout_seconds=1)
    session = _Session(*responses)
    client._session = session
    return client, session


@pytest.mark.asyncio
async def test_send_photo_returns_message_id():
    client, session = make_client(_Response({"ok": True, "result": {"message_id": 42}}))

    message_id = await client.send_photo("https://x/y.jpg", "<b>cap</b>")

    url, payload = session.requests[0]
    assert message_id == 42
    assert url == "https://api.telegram.org/bot123:abc/sendPhoto"
    assert payload["chat_id"] == "-100"
    assert payload["parse_mode"] == "HTML"
    assert payload["caption"] == "<b>cap</b>"

@pytest.mark.asyncio
async def test_error_response_raises_classified_error():
    client, _ = make_client(_Response({"ok": False, "description": "Bad Request: message caption is too long"}, 400))

    with pytest.raises(TelegramApiError) as info:
        await client.send_photo("https://x/y.jpg", "cap")

    assert info.value.kind is TelegramErrorKind.TOO_LONG
    assert info.value.method == "sendPhoto"

@pytest.mark.asyncio
async def test_not_modified_is_success_on_edit():
    client, _ = make_client(_Response({"ok": False, "description": "Bad Request: message is not modified"}, 400))

    assert await client.edit_caption(7, "same") is None

@pytest.mark.asyncio
async def test_not_modified_is_error_on_send():
    client, _ = make_client(_Response({"ok": False, "description": "Bad Request: message is not modified"}, 400))

    with pytest.raises(TelegramApiError):
        await client.send_text("same")

@pytest.mark.asyncio
async def test_non_json_body():
    client, _ = make_client(_Response("<html>502 Bad Gateway</html>", 502))

    with pytest.raises(TelegramApiError) as info:
        await client.send_text("x")

    assert "502 Bad Gateway" in info.value.description

@pytest.mark.asyncio
async def test_transport_failure_becomes_api_error():
    client, _ = make_client(aiohttp.ClientConnectionError("connection reset"))

    with pytest.raises(TelegramApiError) as info:
        await client.pin(5)

    assert info.value.method == "pinChatMessage"
    assert info.value.kind is TelegramErrorKind.OTHER

@pytest.mark.asyncio
async def test_edit_media_payload():
    client, session = make_client(_Response({"ok": True, "result": True}))

    await client.edit_media(9, "https://x/new.jpg", "cap")

    _, payload = session.requests[0]
    assert payload["message_id"] == 9
    assert payload["media"] == {"type": "photo", "media": "https://x/new.jpg", "caption": "cap", "parse_mode": "HTML"}

@pytest.mark.asyncio
async def test_get_pinned_message():
    pinned = {"message_id": 3, "caption": "🎬 今日电视剧更新\n📺 A"}
    client, _ = make_client(_Response({"ok": True, "result": {"id": -100, "pinned_message": pinned}}))

    assert await client.get_pinned_message() == pinned

@pytest.mark.asyncio
async def test_get_pinned_message_failure_is_none():
    client, _ = make_client(_Response({"ok": False, "description": "Forbidden: bot was kicked"}, 403))

    assert await client.get_pinned_message() is None

@pytest.mark.asyncio
async def test_close_closes_session():
    client, session = make_client()

    await client.close()

    assert session.closed
