"""
Cross-day buffer for library events.

Library events never start or reset a day. They are applied right away only
when today's dashboard is ready; otherwise they wait in
``state.pending_library[date_key]`` until a reminder establishes that day.
"""
from __future__ import annotations

from typing import Any, Iterable, List

from .models import CanonicalItem, DashboardState, upgrade_canonical_item

PENDING_LIMIT_PER_DAY = 200


def is_ready_for(state: DashboardState, date_key: str) -> bool:
    return state.date_key == date_key and bool(state.content) and state.has_message


def buffer_library_items(
    state: DashboardState,
    date_key: str,
    lib_items: Iterable[Any],
    limit: int = PENDING_LIMIT_PER_DAY,
) -> int:
    """
    Append library records to the bucket of ``date_key``.

    Records are unique by (show key, range); the oldest ones are evicted
    beyond ``limit``.

    Returns:
        Bucket size after buffering.
    """
    day = str(date_key or "").strip()
    if not day:
        return 0

    bucket = state.pending_library.setdefault(day, [])
    seen = {it.signature for it in bucket}

    for raw in lib_items:
        item = upgrade_canonical_item(raw)
        if item is None or item.signature in seen:
            continue
        bucket.append(item)
        seen.add(item.signature)

    if len(bucket) > limit:
        state.pending_library[day] = bucket[len(bucket) - limit:]

    return len(state.pending_library[day])


def retain_only(state: DashboardState, date_key: str) -> None:
    """Drop every bucket except the one for ``date_key``."""
    keep = state.pending_library.get(date_key)
    state.pending_library = {date_key: keep} if keep else {}


def drain_pending(state: DashboardState, date_key: str) -> List[CanonicalItem]:
    """Remove and return the bucket for ``date_key`` (empty list if none)."""
    return state.pending_library.pop(date_key, None) or []

