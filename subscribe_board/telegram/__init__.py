"""Telegram side of the subscribe board: Bot API client, caption rendering, dashboard upsert."""

from .errors import TelegramApiError, TelegramErrorKind, classify_telegram_error
from .notifier import TelegramBotClient

__all__ = [
    "TelegramApiError",
    "TelegramBotClient",
    "TelegramErrorKind",
    "classify_telegram_error",
]
