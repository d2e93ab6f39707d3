"""
Aggregation state machine for one dashboard chat.

Each call loads the chat's state blob, applies one reminder ("subscribe") or
library event, decides whether the Telegram dashboard must change, publishes
through ``DashboardPublisher`` and writes the state back. Calls for the same
chat must be serialized by the caller (see ``BoardWorker``).
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..core.config import DashboardConfig
from ..core.config.load_env_config import DEFAULT_COLLATE_LOCALE, DEFAULT_TIME_ZONE
from ..errors import ConfigurationError, InvalidPayloadError
from ..telegram.dashboard import DashboardPublisher
from ..telegram.formatter import render_tiers
from ..utils.time_utils import format_date_time
from ..utils.url import sanitize_http_url
from .merge import apply_availability, merge_reminder
from .models import DashboardState
from .pending import buffer_library_items, drain_pending, is_ready_for, retain_only
from .sorting import get_collator, sort_content
from .store import StateStore

logger = logging.getLogger(__name__)

EventType = Literal["subscribe", "library"]


class AggregateRequest(BaseModel):
    """Core input: ``{dateKey, event, items, image}``."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    date_key: str = Field(alias="dateKey", min_length=1)
    event: str = "subscribe"
    items: List[Any]
    image: str = ""

    @property
    def event_type(self) -> EventType:
        # anything that is not a library event is treated as a reminder
        return "library" if self.event == "library" else "subscribe"


def parse_request(payload: Union[AggregateRequest, Mapping[str, Any]]) -> AggregateRequest:
    if isinstance(payload, AggregateRequest):
        return payload
    if not isinstance(payload, Mapping):
        raise InvalidPayloadError("Invalid payload to board aggregator")
    try:
        return AggregateRequest.model_validate(dict(payload))
    except ValidationError as exc:
        raise InvalidPayloadError(f"Invalid payload to board aggregator: {exc.error_count()} error(s)") from exc


class SubscribeBoard:
    def __init__(
        self,
        store: StateStore,
        publisher: DashboardPublisher,
        bot_token: Optional[str],
        chat_id: Optional[str],
        time_zone: str = DEFAULT_TIME_ZONE,
        config: Optional[DashboardConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
        collate_locale: str = DEFAULT_COLLATE_LOCALE,
    ):
        self.store = store
        self.publisher = publisher
        self.bot_token = bot_token
        self.chat_id = chat_id
        self.time_zone = time_zone
        self.config = config or DashboardConfig()
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.collate_locale = collate_locale

    @property
    def state_key(self) -> str:
        return str(self.chat_id)

    async def load_state(self) -> DashboardState:
        state = DashboardState.from_blob(await self.store.get(self.state_key))
        sort_content(state.content, get_collator(self.collate_locale))
        return state

    async def save_state(self, state: DashboardState) -> None:
        await self.store.put(self.state_key, state.to_blob())

    async def handle_aggregate(self, payload: Union[AggregateRequest, Mapping[str, Any]]) -> Dict[str, Any]:
        if not self.bot_token or not self.chat_id:
            raise ConfigurationError("Missing Env Vars: BOT_TOKEN / CHAT_ID")

        request = parse_request(payload)
        state = await self.load_state()

        if request.event_type == "library":
            if not is_ready_for(state, request.date_key):
                return await self._buffer(state, request)
            if not apply_availability(state.content, request.items):
                await self.save_state(state)
                return {
                    "ok": True,
                    "skipped": True,
                    "reason": "Library: no matching episodes in today's list",
                    "dateKey": request.date_key,
                    "messageId": state.message_id,
                }
            changed = True
        else:
            changed = self._apply_reminder(state, request)

        if not changed and state.has_message:
            # persists drained buckets even when nothing needs publishing
            await self.save_state(state)
            return {"ok": True, "skipped": True, "reason": "No update needed", "messageId": state.message_id}

        return await self._publish(state)

    async def _buffer(self, state: DashboardState, request: AggregateRequest) -> Dict[str, Any]:
        count = buffer_library_items(
            state, request.date_key, request.items, limit=self.config.pending_limit_per_day
        )
        await self.save_state(state)

        same_day = state.date_key == request.date_key
        reason = "Buffered: dashboard not ready yet" if same_day else "Buffered: cross-day library event"
        logger.info("library event for %s buffered (%s), pending=%d", request.date_key, reason, count)
        return {
            "ok": True,
            "skipped": True,
            "reason": reason,
            "dateKey": request.date_key,
            "pendingCount": count,
        }

    def _apply_reminder(self, state: DashboardState, request: AggregateRequest) -> bool:
        """Only a reminder may start a new day on the dashboard."""
        changed = False
        date_key = request.date_key

        if state.date_key != date_key:
            logger.info("new dashboard day %s (was %s)", date_key, state.date_key)
            state.date_key = date_key
            state.content = []
            state.day_image = ""
            retain_only(state, date_key)
            changed = True

        if merge_reminder(state.content, request.items):
            changed = True
        sort_content(state.content, get_collator(self.collate_locale))

        # first valid cover of the day wins
        image = sanitize_http_url(request.image)
        if not state.day_image and image:
            state.day_image = image
            changed = True

        pending = drain_pending(state, date_key)
        if pending:
            logger.info("applying %d buffered library records for %s", len(pending), date_key)
            if apply_availability(state.content, pending):
                changed = True

        return changed

    async def _publish(self, state: DashboardState) -> Dict[str, Any]:
        updated_at = format_date_time(self.clock(), self.time_zone)
        tiers = render_tiers(
            state.date_key or "",
            updated_at,
            state.content,
            self.config.caption_budgets,
        )

        action = await self.publisher.upsert(state, tiers)
        await self.save_state(state)

        logger.info("dashboard %s message_id=%s", action.get("type"), state.message_id)
        return {
            "ok": True,
            "skipped": False,
            "action": action,
            "messageId": state.message_id,
            "dateKey": state.date_key,
        }
