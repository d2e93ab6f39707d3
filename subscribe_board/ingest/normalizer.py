"""
MoviePilot notification parsing.

Turns the raw webhook payload into an event type plus canonical items:

- reminder ("电视剧更新"): lines like ``📺 神印王座 (2022) S01E13-E14``
- library ("已入库"): lines like ``神印王座 (2022) S01 E193 已入库``
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, List, Literal, Optional, Tuple

from ..board.models import CanonicalItem, normalize_season, normalize_title_key, parse_episode_part

EventKind = Literal["subscribe", "library", "skip"]

LIBRARY_KEYWORD = "已入库"
REMINDER_KEYWORD = "电视剧更新"
DOWNLOAD_START_KEYWORD = "开始下载"

TV_LINE_PREFIX_RE = re.compile(r"^📺[\uFE0E\uFE0F]?")
_TV_LINE_STRIP_RE = re.compile(r"^📺[\uFE0E\uFE0F]?\s*")

_EPISODE_PART = r"E?(\d+(?:\s*-\s*E?\d+)?)"
_SUBSCRIBE_LINE_RE = re.compile(rf"^(.+?)\s*\((\d{{4}})\)\s*(S\d+)\s*{_EPISODE_PART}$", re.IGNORECASE)
_LIBRARY_LINE_RE = re.compile(rf"^(.+?)\s*\((\d{{4}})\)\s*(S\d+)\s*{_EPISODE_PART}\s*{LIBRARY_KEYWORD}", re.IGNORECASE)


@dataclass(frozen=True)
class Classification:
    type: EventKind
    reason: Optional[str] = None


def extract_text_and_image(payload: Any) -> Tuple[str, str]:
    """
    Pull the notification text and cover image out of a webhook payload.

    Supports ``{"data": {"title", "text", "image"}}`` and the flat
    ``{"title", "text" | "message", "image"}`` shape.
    """
    text: Any = ""
    image: Any = ""

    if isinstance(payload, dict):
        data = payload.get("data")
        if isinstance(data, dict):
            text = data.get("text") or ""
            image = data.get("image") or ""
            title = data.get("title") or ""
            if title and isinstance(title, str) and title not in str(text):
                text = f"{title}\n{text}"
        else:
            text = f"{payload.get('title') or ''}\n{payload.get('text') or payload.get('message') or ''}"
            image = payload.get("image") or ""

    return str(text or ""), str(image or "")


def is_subscribe_reminder(text: str) -> bool:
    if not text or REMINDER_KEYWORD not in text:
        return False
    return any(TV_LINE_PREFIX_RE.match(line.strip()) for line in text.split("\n"))


def classify_event(text: str) -> Classification:
    t = str(text or "")
    if not t.strip():
        return Classification("skip", "Empty text")

    if LIBRARY_KEYWORD in t:
        return Classification("library")

    if DOWNLOAD_START_KEYWORD in t:
        return Classification("skip", "Start download (ignored)")

    if is_subscribe_reminder(t):
        return Classification("subscribe")

    return Classification("skip", "Not SubscribeReminder / Not Library")


def _to_item(match: "re.Match[str]") -> Optional[CanonicalItem]:
    rng = parse_episode_part(match.group(4))
    if rng is None:
        return None
    return CanonicalItem(
        title=normalize_title_key(match.group(1)),
        year=match.group(2).strip(),
        season=normalize_season(match.group(3)),
        ep_from=rng.ep_from,
        ep_to=rng.ep_to,
        ep_from_str=rng.ep_from_str,
        ep_to_str=rng.ep_to_str,
    )


def normalize_subscribe_content(raw_text: str) -> List[CanonicalItem]:
    result: List[CanonicalItem] = []
    for line in str(raw_text or "").split("\n"):
        line = line.strip()
        if not TV_LINE_PREFIX_RE.match(line):
            continue
        match = _SUBSCRIBE_LINE_RE.match(_TV_LINE_STRIP_RE.sub("", line))
        item = _to_item(match) if match else None
        if item is not None:
            result.append(item)
    return result


def normalize_library_content(raw_text: str) -> List[CanonicalItem]:
    result: List[CanonicalItem] = []
    for line in str(raw_text or "").split("\n"):
        line = line.strip()
        if not line or LIBRARY_KEYWORD not in line:
            continue
        match = _LIBRARY_LINE_RE.match(line)
        item = _to_item(match) if match else None
        if item is not None:
            result.append(item)
    return result


def normalize_content(event: EventKind, raw_text: str) -> List[CanonicalItem]:
    if event == "subscribe":
        return normalize_subscribe_content(raw_text)
    if event == "library":
        return normalize_library_content(raw_text)
    return []
