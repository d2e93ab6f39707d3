from typing import Optional

from fastapi import FastAPI

from .api.health import health_router
from .api.lifespan import make_lifespan
from .api.webhook import webhook_router
from .board.store import StateStore
from .core.config import Config, Env_config
from .telegram.dashboard import DashboardClient


def create_app(
    env: Optional[Env_config] = None,
    config: Optional[Config] = None,
    client: Optional[DashboardClient] = None,
    store: Optional[StateStore] = None,
) -> FastAPI:
    """
    组装 FastAPI 应用; 参数为空时在启动阶段从 .env / config.yaml 加载
    """
    app = FastAPI(title="subscribe-board", lifespan=make_lifespan(env, config, client, store))
    app.include_router(health_router)
    app.include_router(webhook_router)
    return app


app = create_app()
