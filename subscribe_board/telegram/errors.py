"""
Telegram Bot API error handling.

Telegram reports failures only as a free-text ``description``. Everything
that depends on its wording goes through ``classify_telegram_error`` so a
change in Telegram's phrasing is fixed in one place.
"""
from __future__ import annotations

from enum import Enum
from typing import Optional


class TelegramErrorKind(str, Enum):
    NOT_MODIFIED = "not_modified"
    TOO_LONG = "too_long"
    PARSE_ENTITIES = "parse_entities"
    OTHER = "other"


_NOT_MODIFIED_MARKERS = ("message is not modified",)
_TOO_LONG_MARKERS = ("too long", "too_long")
# matches Telegram's current wording: "Bad Request: can't parse entities: ..."
_PARSE_MARKERS = ("can't parse entities", "parse entities", "entity", "html")


def classify_telegram_error(description: Optional[str]) -> TelegramErrorKind:
    text = str(description or "").lower()
    if any(marker in text for marker in _NOT_MODIFIED_MARKERS):
        return TelegramErrorKind.NOT_MODIFIED
    if any(marker in text for marker in _TOO_LONG_MARKERS):
        return TelegramErrorKind.TOO_LONG
    if any(marker in text for marker in _PARSE_MARKERS):
        return TelegramErrorKind.PARSE_ENTITIES
    return TelegramErrorKind.OTHER


class TelegramApiError(Exception):
    def __init__(self, description: str, method: str = ""):
        self.description = description
        self.method = method
        self.kind = classify_telegram_error(description)
        super().__init__(description)
