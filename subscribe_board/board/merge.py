from __future__ import annotations

from typing import Any, Iterable, List, Optional

from .models import ShowProgress, upgrade_canonical_item


def _find_show(content: List[ShowProgress], key: str) -> Optional[int]:
    for idx, show in enumerate(content):
        if show.key == key:
            return idx
    return None


def should_replace(existing: ShowProgress, incoming: Any) -> bool:
    """Widest range wins; ties go to the later end, then to the earlier start."""
    if incoming.length != existing.length:
        return incoming.length > existing.length
    if incoming.ep_to != existing.ep_to:
        return incoming.ep_to > existing.ep_to
    return incoming.ep_from < existing.ep_from


def merge_reminder(content: List[ShowProgress], incoming: Iterable[Any]) -> bool:
    """
    Merge reminder records into today's content in place.

    Unknown shows are appended. A known show takes the incoming range only
    when ``should_replace`` says so, keeping the confirmations that still lie
    inside the new window.

    Returns:
        True if content changed.
    """
    changed = False

    for raw in incoming:
        item = upgrade_canonical_item(raw)
        if item is None:
            continue

        idx = _find_show(content, item.key)
        if idx is None:
            content.append(ShowProgress(**item.model_dump(), done=[]))
            changed = True
            continue

        existing = content[idx]
        if not should_replace(existing, item):
            continue

        preserved = sorted({ep for ep in existing.done if item.contains(ep)})
        content[idx] = ShowProgress(**item.model_dump(), done=preserved)
        changed = True

    return changed


def apply_availability(content: List[ShowProgress], lib_items: Iterable[Any]) -> bool:
    """
    Mark library ("已入库") episodes as done on matching shows.

    Records for shows not on today's list are dropped. Re-adding an episode
    that is already done is not a change.
    """
    changed = False

    for raw in lib_items:
        lib = upgrade_canonical_item(raw)
        if lib is None:
            continue

        idx = _find_show(content, lib.key)
        if idx is None:
            continue

        show = content[idx]
        start = max(lib.ep_from, show.ep_from)
        end = min(lib.ep_to, show.ep_to)
        if end < start:
            continue

        done = set(show.done)
        added = set(range(start, end + 1)) - done
        if added:
            show.done = sorted(done | added)
            changed = True

    return changed
