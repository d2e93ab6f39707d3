import os
from dataclasses import dataclass
from typing import Mapping, Optional

import dotenv

from ._get_value import get_optional, parse_flag

DEFAULT_TIME_ZONE = "Asia/Shanghai"
DEFAULT_STATE_DB_PATH = "data/subscribe_board.db"
DEFAULT_COLLATE_LOCALE = "zh_CN.UTF-8"


@dataclass(frozen=True)
class Env_config:
    WEBHOOK_TOKEN: Optional[str]

    BOT_TOKEN: Optional[str]
    CHAT_ID: Optional[str]

    TIME_ZONE: str
    COLLATE_LOCALE: str

    STRICT_SINGLE_MESSAGE: bool
    ADOPT_PINNED: bool
    AUTO_PIN: bool
    PREFER_PHOTO_MESSAGE: bool
    ALLOW_TEXT_TO_PHOTO_UPGRADE: bool

    STATE_DB_PATH: str
    TELEGRAM_TIMEOUT_SECONDS: float
    BOARD_QUEUE_MAXSIZE: int

    LOG_DIR: str
    LOG_LEVEL: str

    HOST: str
    PORT: int

def parse_env_config(env: Mapping[str, str]) -> Env_config:
    return Env_config(
        WEBHOOK_TOKEN=get_optional(env, "WEBHOOK_TOKEN"),

        BOT_TOKEN=get_optional(env, "BOT_TOKEN"),
        CHAT_ID=get_optional(env, "CHAT_ID"),

        TIME_ZONE=get_optional(env, "TIME_ZONE", DEFAULT_TIME_ZONE),
        COLLATE_LOCALE=get_optional(env, "COLLATE_LOCALE", DEFAULT_COLLATE_LOCALE),

        STRICT_SINGLE_MESSAGE=parse_flag(env, "STRICT_SINGLE_MESSAGE", True),
        ADOPT_PINNED=parse_flag(env, "ADOPT_PINNED", True),
        AUTO_PIN=parse_flag(env, "AUTO_PIN", False),
        PREFER_PHOTO_MESSAGE=parse_flag(env, "PREFER_PHOTO_MESSAGE", True),
        ALLOW_TEXT_TO_PHOTO_UPGRADE=parse_flag(env, "ALLOW_TEXT_TO_PHOTO_UPGRADE", True),

        STATE_DB_PATH=get_optional(env, "STATE_DB_PATH", DEFAULT_STATE_DB_PATH),
        TELEGRAM_TIMEOUT_SECONDS=float(get_optional(env, "TELEGRAM_TIMEOUT_SECONDS", "10")),
        BOARD_QUEUE_MAXSIZE=int(get_optional(env, "BOARD_QUEUE_MAXSIZE", "1000")),

        LOG_DIR=get_optional(env, "LOG_DIR", "data"),
        LOG_LEVEL=get_optional(env, "LOG_LEVEL", "INFO").upper(),

        HOST=get_optional(env, "HOST", "0.0.0.0"),
        PORT=int(get_optional(env, "PORT", "8000")),
    )

def load_env_config(dotenv_path: str = ".env") -> Env_config:
    dotenv.load_dotenv(dotenv_path)
    return parse_env_config(os.environ)
