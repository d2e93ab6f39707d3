from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Optional, Union

import aiohttp

from .errors import TelegramApiError, TelegramErrorKind

logger = logging.getLogger(__name__)

MessageId = Union[int, str]

PARSE_MODE = "HTML"


class TelegramBotClient:
    """Telegram Bot API client for the dashboard message of one chat."""

    def __init__(self, token: str, chat_id: str, timeout_seconds: float = 10.0):
        self.token = token
        self.chat_id = chat_id
        self.base_url = f"https://api.telegram.org/bot{token}"
        self.timeout_seconds = timeout_seconds
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            # trust_env=True: respect HTTP(S)_PROXY env vars (common on servers)
            self._session = aiohttp.ClientSession(
                trust_env=True,
                timeout=aiohttp.ClientTimeout(total=self.timeout_seconds),
            )
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()

    @staticmethod
    def _safe_json(raw: str, status: int) -> Dict[str, Any]:
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            return {"ok": False, "raw": raw, "status": status}
        return data if isinstance(data, dict) else {"ok": False, "raw": raw, "status": status}

    async def call(self, method: str, payload: Dict[str, Any], allow_not_modified: bool = False) -> Any:
        """
        Call a Bot API method.

        Returns:
            ``message_id`` when the result is a message, the raw result
            otherwise, None for an allowed "message is not modified".

        Raises:
            TelegramApiError: non-ok response or transport failure
        """
        session = await self._get_session()
        url = f"{self.base_url}/{method}"
        try:
            async with session.post(url, json=payload) as resp:
                data = self._safe_json(await resp.text(), resp.status)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise TelegramApiError(f"{type(exc).__name__}: {exc}", method) from exc

        if not data.get("ok"):
            desc = data.get("description") or data.get("error") or data.get("raw") or f"Telegram API error: {method}"
            error = TelegramApiError(str(desc), method)
            if allow_not_modified and error.kind is TelegramErrorKind.NOT_MODIFIED:
                logger.debug("telegram %s: message not modified", method)
                return None
            raise error

        result = data.get("result")
        if isinstance(result, dict) and isinstance(result.get("message_id"), int):
            return result["message_id"]
        return result

    async def send_text(self, text: str) -> MessageId:
        return await self.call(
            "sendMessage",
            {"chat_id": self.chat_id, "text": text, "parse_mode": PARSE_MODE, "disable_notification": True},
        )

    async def send_photo(self, photo: str, caption: str) -> MessageId:
        return await self.call(
            "sendPhoto",
            {
                "chat_id": self.chat_id,
                "photo": photo,
                "caption": caption,
                "parse_mode": PARSE_MODE,
                "disable_notification": True,
            },
        )

    async def edit_text(self, message_id: MessageId, text: str) -> None:
        await self.call(
            "editMessageText",
            {"chat_id": self.chat_id, "message_id": message_id, "text": text, "parse_mode": PARSE_MODE},
            allow_not_modified=True,
        )

    async def edit_caption(self, message_id: MessageId, caption: str) -> None:
        await self.call(
            "editMessageCaption",
            {"chat_id": self.chat_id, "message_id": message_id, "caption": caption, "parse_mode": PARSE_MODE},
            allow_not_modified=True,
        )

    async def edit_media(self, message_id: MessageId, photo: str, caption: str) -> None:
        await self.call(
            "editMessageMedia",
            {
                "chat_id": self.chat_id,
                "message_id": message_id,
                "media": {"type": "photo", "media": photo, "caption": caption, "parse_mode": PARSE_MODE},
            },
            allow_not_modified=True,
        )

    async def pin(self, message_id: MessageId) -> None:
        await self.call(
            "pinChatMessage",
            {"chat_id": self.chat_id, "message_id": message_id, "disable_notification": True},
        )

    async def unpin(self, message_id: MessageId) -> None:
        await self.call("unpinChatMessage", {"chat_id": self.chat_id, "message_id": message_id})

    async def get_pinned_message(self) -> Optional[Dict[str, Any]]:
        """The chat's pinned message, or None when it cannot be read."""
        try:
            chat = await self.call("getChat", {"chat_id": self.chat_id})
        except TelegramApiError as exc:
            logger.warning("getChat failed, not adopting a pinned dashboard: %s", exc)
            return None
        if not isinstance(chat, dict):
            return None
        pinned = chat.get("pinned_message")
        return pinned if isinstance(pinned, dict) else None
