"""
Keeps ONE Telegram dashboard message per chat, preferring a photo message.

Decision order on every publish:
1. no known message: adopt the chat's pinned dashboard if allowed, else create
   one (photo when a cover exists, plain text otherwise);
2. text message while photo is preferred: one-time upgrade to a new photo
   message (or keep editing text / fail in strict mode);
3. photo message: edit caption, or media + caption when today's cover changed;
4. otherwise edit the text.

Every send/edit walks the caption tiers full -> aggressive -> minimal. State is
only touched after Telegram accepted the call.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Tuple, TypeVar

from ..board.models import DashboardState, MessageKind
from ..core.config import Env_config
from ..errors import StrictModeViolation
from ..utils.url import sanitize_http_url
from .errors import TelegramApiError, TelegramErrorKind
from .formatter import (
    TEXT_HARD_LIMIT,
    TG_TEXT_LIMIT,
    CaptionTiers,
    hard_trim_to_chars,
    looks_like_dashboard,
    strip_all_tags,
)
from .notifier import MessageId

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DashboardClient(Protocol):
    async def send_text(self, text: str) -> MessageId: ...

    async def send_photo(self, photo: str, caption: str) -> MessageId: ...

    async def edit_text(self, message_id: MessageId, text: str) -> None: ...

    async def edit_caption(self, message_id: MessageId, caption: str) -> None: ...

    async def edit_media(self, message_id: MessageId, photo: str, caption: str) -> None: ...

    async def pin(self, message_id: MessageId) -> None: ...

    async def unpin(self, message_id: MessageId) -> None: ...

    async def get_pinned_message(self) -> Optional[Dict[str, Any]]: ...


@dataclass(frozen=True)
class DashboardPolicy:
    prefer_photo: bool = True
    allow_text_to_photo_upgrade: bool = True
    strict: bool = True
    adopt_pinned: bool = True
    auto_pin: bool = False

    @classmethod
    def from_env(cls, env: Env_config) -> "DashboardPolicy":
        return cls(
            prefer_photo=env.PREFER_PHOTO_MESSAGE,
            allow_text_to_photo_upgrade=env.ALLOW_TEXT_TO_PHOTO_UPGRADE,
            strict=env.STRICT_SINGLE_MESSAGE,
            adopt_pinned=env.ADOPT_PINNED,
            auto_pin=env.AUTO_PIN,
        )


def pick_photo_for_send(state: DashboardState) -> str:
    """Today's cover if any, else the cover already on the message."""
    return sanitize_http_url(state.day_image) or sanitize_http_url(state.photo_url)


def extract_pinned_text(pinned: Dict[str, Any]) -> Optional[Tuple[MessageKind, str]]:
    text = pinned.get("text")
    if isinstance(text, str) and text.strip():
        return "text", text
    caption = pinned.get("caption")
    if isinstance(caption, str) and caption.strip():
        return "photo", caption
    return None


class DashboardPublisher:
    def __init__(
        self,
        client: DashboardClient,
        policy: Optional[DashboardPolicy] = None,
        text_hard_limit: int = TEXT_HARD_LIMIT,
    ):
        self.client = client
        self.policy = policy or DashboardPolicy()
        self.text_limit = min(TG_TEXT_LIMIT, text_hard_limit)

    async def upsert(self, state: DashboardState, tiers: CaptionTiers) -> Dict[str, Any]:
        adopted = False
        if not state.has_message:
            found = await self.try_adopt()
            if found:
                state.message_id, state.message_kind = found
                adopted = True
                logger.info("adopted pinned dashboard message_id=%s kind=%s", *found)

        if not state.has_message:
            return await self._create(state, tiers)

        if self.policy.prefer_photo and state.message_kind == "text":
            if not self.policy.allow_text_to_photo_upgrade:
                if self.policy.strict:
                    raise StrictModeViolation(
                        "PREFER_PHOTO_MESSAGE=1 but dashboard is text and ALLOW_TEXT_TO_PHOTO_UPGRADE=0 (strict)."
                    )
                return self._tag(await self._edit_text(state, tiers), adopted)

            photo = pick_photo_for_send(state)
            if not photo:
                return self._tag(await self._edit_text(state, tiers), adopted)
            return self._tag(await self._upgrade_to_photo(state, tiers, photo), adopted)

        if state.message_kind == "photo":
            return self._tag(await self._edit_photo(state, tiers), adopted)

        return self._tag(await self._edit_text(state, tiers), adopted)

    @staticmethod
    def _tag(action: Dict[str, Any], adopted: bool) -> Dict[str, Any]:
        if adopted:
            action["adopted"] = True
        return action

    async def try_adopt(self) -> Optional[Tuple[MessageId, MessageKind]]:
        """Pinned message that looks like our dashboard, if adoption is enabled."""
        if not self.policy.adopt_pinned:
            return None
        pinned = await self.client.get_pinned_message()
        if not pinned or pinned.get("message_id") is None:
            return None
        extracted = extract_pinned_text(pinned)
        if not extracted:
            return None
        kind, text = extracted
        if not looks_like_dashboard(text):
            logger.info("pinned message %s is not a dashboard, ignoring", pinned.get("message_id"))
            return None
        return pinned["message_id"], kind

    async def _attempt_tiers(
        self,
        label: str,
        attempts: List[str],
        op: Callable[[str], Awaitable[T]],
        retry_on_other: bool = True,
    ) -> Tuple[T, int]:
        """
        Run ``op`` on each document until Telegram accepts one.

        A parse-entities rejection strips the markup of the next document;
        a too-long rejection just moves on. Other rejections move on only
        when ``retry_on_other`` is set: a send that timed out may still have
        created a message, so sends re-raise them at once. The last failure
        is re-raised.
        """
        attempts = list(attempts)
        for i, doc in enumerate(attempts):
            try:
                return await op(doc), i + 1
            except TelegramApiError as exc:
                if i == len(attempts) - 1:
                    raise
                if exc.kind is TelegramErrorKind.OTHER and not retry_on_other:
                    raise
                if exc.kind is TelegramErrorKind.PARSE_ENTITIES:
                    attempts[i + 1] = strip_all_tags(attempts[i + 1])
                logger.warning(
                    "%s attempt %d/%d rejected (%s): %s",
                    label, i + 1, len(attempts), exc.kind.value, exc.description,
                )
        raise RuntimeError("no caption tiers to try")

    def _text_attempts(self, tiers: CaptionTiers) -> List[str]:
        return [hard_trim_to_chars(strip_all_tags(doc), self.text_limit) for doc in tiers.as_list()]

    async def _best_effort_pin(self, message_id: MessageId) -> None:
        try:
            await self.client.pin(message_id)
        except Exception as exc:
            logger.warning("pin message_id=%s failed: %s", message_id, exc)

    async def _best_effort_unpin(self, message_id: MessageId) -> None:
        try:
            await self.client.unpin(message_id)
        except Exception as exc:
            logger.warning("unpin message_id=%s failed: %s", message_id, exc)

    async def _send_text(self, tiers: CaptionTiers) -> Tuple[MessageId, int]:
        return await self._attempt_tiers(
            "sendMessage", self._text_attempts(tiers), self.client.send_text, retry_on_other=False
        )

    async def _send_photo(self, photo: str, tiers: CaptionTiers) -> Tuple[MessageId, int]:
        return await self._attempt_tiers(
            "sendPhoto", tiers.as_list(), lambda caption: self.client.send_photo(photo, caption),
            retry_on_other=False,
        )

    async def _create(self, state: DashboardState, tiers: CaptionTiers) -> Dict[str, Any]:
        photo = pick_photo_for_send(state) if self.policy.prefer_photo else ""

        if photo:
            msg_id, attempt = await self._send_photo(photo, tiers)
            state.message_id = msg_id
            state.message_kind = "photo"
            state.photo_url = photo
            action: Dict[str, Any] = {"type": "sendPhoto", "messageId": msg_id, "attempt": attempt}
        else:
            # no cover yet: start as text, upgraded later if allowed
            msg_id, attempt = await self._send_text(tiers)
            state.message_id = msg_id
            state.message_kind = "text"
            action = {"type": "sendMessage", "messageId": msg_id, "attempt": attempt}
            if self.policy.prefer_photo:
                action["note"] = "no_photo_yet"

        if self.policy.auto_pin:
            await self._best_effort_pin(msg_id)
        logger.info("created dashboard %s message_id=%s", action["type"], msg_id)
        return action

    async def _upgrade_to_photo(self, state: DashboardState, tiers: CaptionTiers, photo: str) -> Dict[str, Any]:
        old_id = state.message_id
        new_id, attempt = await self._send_photo(photo, tiers)

        state.message_id = new_id
        state.message_kind = "photo"
        state.photo_url = photo

        if self.policy.auto_pin:
            await self._best_effort_pin(new_id)
            await self._best_effort_unpin(old_id)

        logger.info("upgraded text dashboard %s to photo message %s", old_id, new_id)
        return {
            "type": "upgrade_text_to_photo",
            "oldMessageId": old_id,
            "newMessageId": new_id,
            "messageId": new_id,
            "pinned": self.policy.auto_pin,
            "attempt": attempt,
        }

    async def _edit_photo(self, state: DashboardState, tiers: CaptionTiers) -> Dict[str, Any]:
        desired = pick_photo_for_send(state)
        update_media = bool(desired) and desired != state.photo_url and bool(sanitize_http_url(state.day_image))
        message_id = state.message_id

        if update_media:
            _, attempt = await self._attempt_tiers(
                "editMessageMedia",
                tiers.as_list(),
                lambda caption: self.client.edit_media(message_id, desired, caption),
            )
            state.photo_url = desired
            method = "editMessageMedia"
        else:
            _, attempt = await self._attempt_tiers(
                "editMessageCaption",
                tiers.as_list(),
                lambda caption: self.client.edit_caption(message_id, caption),
            )
            method = "editMessageCaption"

        return {"type": method, "messageId": message_id, "attempt": attempt}

    async def _edit_text(self, state: DashboardState, tiers: CaptionTiers) -> Dict[str, Any]:
        message_id = state.message_id
        _, attempt = await self._attempt_tiers(
            "editMessageText",
            self._text_attempts(tiers),
            lambda text: self.client.edit_text(message_id, text),
        )
        return {"type": "editMessageText", "messageId": message_id, "attempt": attempt}
