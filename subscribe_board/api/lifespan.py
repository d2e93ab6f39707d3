import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, Dict, Optional

from fastapi import FastAPI

from ..board.aggregator import AggregateRequest, SubscribeBoard
from ..board.store import SqliteStateStore, StateStore
from ..board.worker import BoardWorker
from ..core.config import Config, Env_config, load_config, load_env_config
from ..errors import ConfigurationError
from ..telegram.dashboard import DashboardClient, DashboardPolicy, DashboardPublisher
from ..telegram.notifier import TelegramBotClient

logger = logging.getLogger(__name__)


@dataclass
class BoardRuntime:
    """进程内共享的看板组件, 挂在 app.state.runtime 上"""
    env: Env_config
    config: Config
    client: Optional[DashboardClient]
    board: Optional[SubscribeBoard]
    worker: BoardWorker

    @property
    def actor_key(self) -> str:
        return str(self.env.CHAT_ID)

    def require_board(self) -> SubscribeBoard:
        if self.board is None or not self.env.BOT_TOKEN or not self.env.CHAT_ID:
            raise ConfigurationError("Missing Env Vars: BOT_TOKEN / CHAT_ID")
        return self.board

    async def submit(self, request: AggregateRequest) -> Dict[str, Any]:
        self.require_board()
        return await self.worker.submit(self.actor_key, request)

    async def aclose(self) -> None:
        await self.worker.aclose()
        if isinstance(self.client, TelegramBotClient):
            await self.client.close()


def build_runtime(
    env: Env_config,
    config: Config,
    client: Optional[DashboardClient] = None,
    store: Optional[StateStore] = None,
) -> BoardRuntime:
    if client is None and env.BOT_TOKEN and env.CHAT_ID:
        client = TelegramBotClient(env.BOT_TOKEN, env.CHAT_ID, timeout_seconds=env.TELEGRAM_TIMEOUT_SECONDS)

    board = None
    if client is not None:
        publisher = DashboardPublisher(
            client,
            DashboardPolicy.from_env(env),
            text_hard_limit=config.dashboard.text_hard_limit,
        )
        board = SubscribeBoard(
            store=store or SqliteStateStore(env.STATE_DB_PATH),
            publisher=publisher,
            bot_token=env.BOT_TOKEN,
            chat_id=env.CHAT_ID,
            time_zone=env.TIME_ZONE,
            config=config.dashboard,
            collate_locale=env.COLLATE_LOCALE,
        )
    else:
        logger.warning("BOT_TOKEN / CHAT_ID not configured, board events will be rejected")

    async def _handle(key: str, request: AggregateRequest) -> Dict[str, Any]:
        if board is None:
            raise ConfigurationError("Missing Env Vars: BOT_TOKEN / CHAT_ID")
        return await board.handle_aggregate(request)

    worker = BoardWorker(_handle, queue_maxsize=env.BOARD_QUEUE_MAXSIZE)
    return BoardRuntime(env=env, config=config, client=client, board=board, worker=worker)


def make_lifespan(
    env: Optional[Env_config] = None,
    config: Optional[Config] = None,
    client: Optional[DashboardClient] = None,
    store: Optional[StateStore] = None,
):
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        runtime = build_runtime(env or load_env_config(), config or load_config(), client, store)
        app.state.runtime = runtime
        logging.info("subscribe board started (chat=%s tz=%s)", runtime.env.CHAT_ID, runtime.env.TIME_ZONE)
        try:
            yield
        finally:
            await runtime.aclose()
            logging.info("subscribe board stopped")

    return lifespan
