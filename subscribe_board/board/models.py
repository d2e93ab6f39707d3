"""
Board data model: canonical items, per-show progress and the per-chat state.

Stored blobs use the camelCase field names (``epFrom``, ``messageId`` ...),
the Python attributes are snake_case. Every load goes through
``DashboardState.from_blob`` which upgrades older stored shapes.
"""
from __future__ import annotations

import json
import logging
import math
import re
from typing import Any, Dict, List, Literal, NamedTuple, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

MessageKind = Literal["unknown", "text", "photo"]
MESSAGE_KINDS = ("unknown", "text", "photo")

_DIGITS_RE = re.compile(r"\d+")
_WHITESPACE_RE = re.compile(r"\s+")
_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


class EpisodeRange(NamedTuple):
    ep_from: int
    ep_to: int
    ep_from_str: str
    ep_to_str: str


def normalize_title_key(title: Any) -> str:
    return _WHITESPACE_RE.sub(" ", str(title or "").strip())


def normalize_season(season: Any) -> str:
    return str(season or "").strip().upper()


def make_show_key(title: Any, year: Any, season: Any) -> str:
    return f"{normalize_title_key(title)}|{str(year or '').strip()}|{normalize_season(season)}"


def parse_episode_part(part: Any) -> Optional[EpisodeRange]:
    """
    Parse an episode fragment such as ``E13``, ``13-14`` or ``E13 - E14``.

    The first and last digit runs bound the range; a reversed range is swapped
    together with its display strings.
    """
    nums = _DIGITS_RE.findall(str(part or "").strip().upper())
    if not nums:
        return None

    from_str = nums[0]
    to_str = nums[-1]
    ep_from, ep_to = int(from_str), int(to_str)

    if ep_to < ep_from:
        ep_from, ep_to = ep_to, ep_from
        from_str, to_str = to_str, from_str

    return EpisodeRange(ep_from, ep_to, from_str, to_str)


def _as_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        number = float(str(value).strip())
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return int(number)


def _leading_int(value: Any) -> Optional[int]:
    match = _LEADING_INT_RE.match(str(value if value is not None else ""))
    return int(match.group(1)) if match else None


class CanonicalItem(BaseModel):
    """One normalized reminder / library record."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    title: str
    year: str
    season: str
    ep_from: int = Field(alias="epFrom")
    ep_to: int = Field(alias="epTo")
    ep_from_str: str = Field(alias="epFromStr")
    ep_to_str: str = Field(alias="epToStr")

    @property
    def key(self) -> str:
        return make_show_key(self.title, self.year, self.season)

    @property
    def signature(self) -> str:
        return f"{self.key}|{self.ep_from}-{self.ep_to}"

    @property
    def length(self) -> int:
        return max(1, self.ep_to - self.ep_from + 1)

    def contains(self, episode: int) -> bool:
        return self.ep_from <= episode <= self.ep_to


class ShowProgress(CanonicalItem):
    """Today's advertised range for one show plus the confirmed episodes."""

    done: List[int] = Field(default_factory=list)

    @property
    def done_count(self) -> int:
        return sum(1 for ep in self.done if self.contains(ep))


def _coerce_done(raw: Any, rng: EpisodeRange) -> List[int]:
    if not isinstance(raw, (list, tuple, set)):
        return []
    episodes = {n for n in (_leading_int(v) for v in raw) if n is not None}
    return sorted(ep for ep in episodes if rng.ep_from <= ep <= rng.ep_to)


def _stored_range(raw: Dict[str, Any]) -> Optional[EpisodeRange]:
    ep_from = _as_int(raw.get("epFrom", raw.get("ep_from")))
    ep_to = _as_int(raw.get("epTo", raw.get("ep_to")))
    from_str = raw.get("epFromStr", raw.get("ep_from_str"))
    to_str = raw.get("epToStr", raw.get("ep_to_str"))

    if ep_from is None or ep_to is None:
        return None
    if not isinstance(from_str, str) or not isinstance(to_str, str) or not from_str or not to_str:
        return None
    if ep_to < ep_from:
        return EpisodeRange(ep_to, ep_from, to_str, from_str)
    return EpisodeRange(ep_from, ep_to, from_str, to_str)


def _fallback_range(raw: Dict[str, Any]) -> EpisodeRange:
    legacy = str(raw.get("episode") or raw.get("episodeDisplay") or "").strip()
    parsed = parse_episode_part(legacy)
    if parsed:
        return parsed

    raw_from = raw.get("epFrom", raw.get("ep_from"))
    raw_to = raw.get("epTo", raw.get("ep_to"))
    ep_from = _leading_int(raw_from or "0") or 0
    ep_to = _leading_int(raw_to or raw_from or "0") or ep_from
    if ep_to < ep_from:
        ep_from, ep_to = ep_to, ep_from
    return EpisodeRange(ep_from, ep_to, str(ep_from), str(ep_to))


def upgrade_content_item(raw: Any) -> Optional[ShowProgress]:
    """
    Map any stored or incoming item shape onto ``ShowProgress``.

    Returns None for records without a title, year or season.
    """
    if isinstance(raw, BaseModel):
        raw = raw.model_dump(by_alias=True)
    if not isinstance(raw, dict):
        return None

    title = normalize_title_key(raw.get("title"))
    year = str(raw.get("year") or "").strip()
    season = normalize_season(raw.get("season"))
    if not title or not year or not season:
        return None

    rng = _stored_range(raw) or _fallback_range(raw)

    return ShowProgress(
        title=title,
        year=year,
        season=season,
        ep_from=rng.ep_from,
        ep_to=rng.ep_to,
        ep_from_str=rng.ep_from_str,
        ep_to_str=rng.ep_to_str,
        done=_coerce_done(raw.get("done"), rng),
    )


def upgrade_canonical_item(raw: Any) -> Optional[CanonicalItem]:
    show = upgrade_content_item(raw)
    if show is None:
        return None
    return CanonicalItem.model_validate(show.model_dump(by_alias=True))


class DashboardState(BaseModel):
    """Durable per-chat state; exactly one blob per actor key."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    message_id: Optional[Union[int, str]] = Field(default=None, alias="messageId")
    message_kind: MessageKind = Field(default="unknown", alias="messageKind")
    date_key: Optional[str] = Field(default=None, alias="dateKey")
    content: List[ShowProgress] = Field(default_factory=list)
    photo_url: str = Field(default="", alias="photoUrl")
    day_image: str = Field(default="", alias="dayImage")
    pending_library: Dict[str, List[CanonicalItem]] = Field(default_factory=dict, alias="pendingLibrary")

    @property
    def has_message(self) -> bool:
        return self.message_id not in (None, "")

    @classmethod
    def from_blob(cls, blob: Union[str, bytes, Dict[str, Any], None]) -> "DashboardState":
        if isinstance(blob, (str, bytes)):
            try:
                blob = json.loads(blob)
            except json.JSONDecodeError:
                logger.warning("stored board state is not valid JSON, starting fresh")
                return cls()
        if not isinstance(blob, dict):
            return cls()

        message_id = blob.get("messageId")
        if isinstance(message_id, bool) or not isinstance(message_id, (int, str)):
            message_id = None

        message_kind = blob.get("messageKind")
        if message_kind not in MESSAGE_KINDS:
            message_kind = "unknown"

        date_key = blob.get("dateKey")
        if not isinstance(date_key, str) or not date_key:
            date_key = None

        raw_content = blob.get("content")
        content = [upgrade_content_item(it) for it in raw_content] if isinstance(raw_content, list) else []

        raw_pending = blob.get("pendingLibrary")
        pending: Dict[str, List[CanonicalItem]] = {}
        if isinstance(raw_pending, dict):
            for day, items in raw_pending.items():
                if not isinstance(items, list):
                    continue
                upgraded = [upgrade_canonical_item(it) for it in items]
                pending[str(day)] = [it for it in upgraded if it is not None]

        photo_url = blob.get("photoUrl")
        day_image = blob.get("dayImage")

        return cls(
            message_id=message_id,
            message_kind=message_kind,
            date_key=date_key,
            content=[it for it in content if it is not None],
            photo_url=photo_url if isinstance(photo_url, str) else "",
            day_image=day_image if isinstance(day_image, str) else "",
            pending_library=pending,
        )

    def to_blob(self) -> str:
        return json.dumps(self.model_dump(by_alias=True), ensure_ascii=False)
