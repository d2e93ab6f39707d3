"""
MoviePilot webhook ingress.

``/webhook`` takes the raw notification, classifies and normalizes it, and
hands the canonical request to the board worker. ``/api/aggregate`` accepts
an already canonical ``{dateKey, event, items, image}`` body.
"""
import logging
import secrets
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from ..board.aggregator import AggregateRequest, parse_request
from ..errors import InvalidPayloadError, QueueFullError
from ..ingest.normalizer import classify_event, extract_text_and_image, normalize_content
from ..utils.time_utils import format_date_key
from .lifespan import BoardRuntime
from .models import WebhookResponse

logger = logging.getLogger(__name__)

webhook_router = APIRouter(tags=["webhook"])


def get_runtime(request: Request) -> BoardRuntime:
    return request.app.state.runtime


def require_token(
    token: Optional[str] = Query(default=None),
    runtime: BoardRuntime = Depends(get_runtime),
) -> BoardRuntime:
    expected = runtime.env.WEBHOOK_TOKEN
    if not expected or not token or not secrets.compare_digest(token, expected):
        raise HTTPException(status_code=401, detail="Unauthorized")
    return runtime


def _error_response(exc: Exception) -> JSONResponse:
    if isinstance(exc, InvalidPayloadError):
        status = 400
    elif isinstance(exc, QueueFullError):
        status = 503
    else:
        status = 500
    body = WebhookResponse(success=False, error=str(exc) or exc.__class__.__name__)
    return JSONResponse(body.model_dump(exclude_none=True), status_code=status)


def _ok(result: Any) -> Dict[str, Any]:
    return WebhookResponse(success=True, result=result).model_dump(exclude_none=True)


async def _read_json(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError as exc:
        raise InvalidPayloadError("Request body is not valid JSON") from exc


@webhook_router.get("/webhook", response_class=PlainTextResponse)
def webhook_ping(runtime: BoardRuntime = Depends(require_token)):
    return "Worker OK"


@webhook_router.post("/webhook", response_model=WebhookResponse, response_model_exclude_none=True)
async def receive_webhook(request: Request, runtime: BoardRuntime = Depends(require_token)):
    try:
        payload = await _read_json(request)
        text, image = extract_text_and_image(payload)

        classified = classify_event(text)
        if classified.type == "skip":
            return _ok(f"Skipped: {classified.reason or 'Not target message'}")

        event = classified.type
        items = normalize_content(event, text)
        if not items:
            return _ok(f"Skipped: No valid items ({event})")

        aggregate = AggregateRequest(
            date_key=format_date_key(datetime.now(timezone.utc), runtime.env.TIME_ZONE),
            event=event,
            items=[item.model_dump(by_alias=True) for item in items],
            image=image if event == "subscribe" else "",
        )
        logger.info("webhook %s event: %d item(s) for %s", event, len(items), aggregate.date_key)
        result = await runtime.submit(aggregate)
    except Exception as exc:
        logger.exception("webhook handling failed")
        return _error_response(exc)

    return _ok(result)


@webhook_router.post("/api/aggregate")
async def aggregate(request: Request, runtime: BoardRuntime = Depends(require_token)):
    try:
        aggregate_request = parse_request(await _read_json(request))
        result = await runtime.submit(aggregate_request)
    except Exception as exc:
        logger.exception("aggregate request failed")
        return _error_response(exc)

    return result
