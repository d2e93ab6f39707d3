from datetime import datetime, timezone

from fastapi import APIRouter, Request

from .. import __version__
from .models import HealthResponse

health_router = APIRouter(tags=["health"])

@health_router.get("/api/health", response_model=HealthResponse)
def get_health(request: Request):
    runtime = request.app.state.runtime
    return HealthResponse(
        status="OK",
        service="subscribe-board",
        version=__version__,
        timestamp=datetime.now(timezone.utc).isoformat(timespec="seconds"),
        configured=runtime.board is not None,
        time_zone=runtime.env.TIME_ZONE,
        active_lanes=runtime.worker.active_keys,
    )
