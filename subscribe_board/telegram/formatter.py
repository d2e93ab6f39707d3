"""
Dashboard formatter.

Renders the day's show list as Telegram HTML and fits it into a visible-length
budget by hiding trailing show lines behind a "…以及 N 条未显示" notice.
Three tiers (full / aggressive / minimal) are rendered per update so the
publisher can fall back to a shorter one when Telegram rejects a caption.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from ..board.models import ShowProgress
from ..core.config import CaptionBudgets

# Telegram limits
TG_TEXT_LIMIT = 4096
TEXT_HARD_LIMIT = 3500

# Safety margins for retry
CAPTION_SAFE_BUDGET = 900
CAPTION_AGGRESSIVE_BUDGET = 700
CAPTION_MIN_BUDGET = 420

HEADER_MARKER = "今日电视剧更新"
SHOW_ICON = "📺"
EMPTY_PLACEHOLDER = "（今日暂无更新）"

_TAG_RE = re.compile(r"<[^>]*>")
_ENTITY_RE = re.compile(r"&[#a-zA-Z0-9]+;")
_KNOWN_ENTITIES = {"&amp;": "&", "&lt;": "<", "&gt;": ">", "&quot;": '"', "&#39;": "'"}
_UNKNOWN_ENTITY = "�"


def escape_html(text: object) -> str:
    return str(text or "").replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def strip_all_tags(html: str) -> str:
    """Remove tags, keep entities escaped (the text is still sent as HTML)."""
    return _TAG_RE.sub("", str(html or ""))


def visible_text(html: str) -> str:
    """What Telegram displays: tags removed, each entity decoded to one character."""
    text = strip_all_tags(html)
    return _ENTITY_RE.sub(lambda m: _KNOWN_ENTITIES.get(m.group(0), _UNKNOWN_ENTITY), text)


def visible_text_length(html: str) -> int:
    # Telegram measures limits in UTF-16 code units
    return len(visible_text(html).encode("utf-16-le")) // 2


def hard_trim_visible(html: str, budget: int) -> str:
    lines = str(html or "").split("\n")
    while len(lines) > 1 and visible_text_length("\n".join(lines)) > budget:
        lines.pop()
    return "\n".join(lines)


def hard_trim_to_chars(text: str, max_chars: int) -> str:
    s = str(text or "")
    if len(s) <= max_chars:
        return s
    return s[: max(0, max_chars - 20)] + "\n…"


def default_pad_episode(n: int) -> str:
    return f"0{n}" if 0 <= n < 10 else str(n)


def format_episode_display(show: ShowProgress) -> str:
    from_str = show.ep_from_str or default_pad_episode(show.ep_from)
    to_str = show.ep_to_str or default_pad_episode(show.ep_to)
    if show.ep_from != show.ep_to:
        return f"E{from_str}-E{to_str}"
    return f"E{from_str}"


def format_episode_with_progress(show: ShowProgress) -> str:
    """``E01-E04 (1/4) ✅`` once something is done, just ``E05 ✅`` for one episode."""
    display = format_episode_display(show)
    done_count = show.done_count
    if not done_count:
        return display
    if show.length <= 1:
        return f"{display} ✅"
    return f"{display} ({done_count}/{show.length}) ✅"


def format_show_line(show: ShowProgress) -> str:
    return (
        f"{SHOW_ICON} <b>{escape_html(show.title.strip())}</b> "
        f"({escape_html(show.year.strip())}) "
        f"{escape_html(show.season.strip().upper())}{escape_html(format_episode_with_progress(show))}"
    )


def truncation_notice(hidden: int) -> str:
    return f"<i>…以及 {hidden} 条未显示</i>"


def fit_lines_to_budget(
    prefix_lines: Sequence[str],
    body_lines: Sequence[str],
    suffix_lines: Sequence[str],
    budget: int,
) -> Optional[str]:
    """
    Longest document (all body lines first, then fewer) whose visible length
    fits ``budget``, or None if even the prefix alone is too long.
    """
    total = len(body_lines)

    for shown in range(total, -1, -1):
        hidden = total - shown
        lines: List[str] = [*prefix_lines, *body_lines[:shown]]
        if hidden > 0:
            lines.append(truncation_notice(hidden))
        lines.extend(suffix_lines)

        html = "\n".join(lines)
        if visible_text_length(html) <= budget:
            return html
    return None


def build_caption_html(date_key: str, updated_at: str, content: Iterable[ShowProgress], budget: int) -> str:
    header = f"🎬 <b>{HEADER_MARKER}</b>"
    meta = f"🗓 <b>{escape_html(date_key)}</b>  ·  ⏱ <i>{escape_html(updated_at)}</i>"

    body = [format_show_line(show) for show in content] or [EMPTY_PLACEHOLDER]

    fitted = fit_lines_to_budget([header, meta, ""], body, [], budget)
    if fitted is not None:
        return fitted
    return hard_trim_visible(f"{header}\n{meta}", budget)


@dataclass(frozen=True)
class CaptionTiers:
    full: str
    aggressive: str
    minimal: str

    def as_list(self) -> List[str]:
        return [self.full, self.aggressive, self.minimal]


def render_tiers(
    date_key: str,
    updated_at: str,
    content: Sequence[ShowProgress],
    budgets: Optional[CaptionBudgets] = None,
) -> CaptionTiers:
    budgets = budgets or CaptionBudgets(
        full=CAPTION_SAFE_BUDGET,
        aggressive=CAPTION_AGGRESSIVE_BUDGET,
        minimal=CAPTION_MIN_BUDGET,
    )
    return CaptionTiers(
        full=build_caption_html(date_key, updated_at, content, budgets.full),
        aggressive=build_caption_html(date_key, updated_at, content, budgets.aggressive),
        minimal=build_caption_html(date_key, updated_at, content, budgets.minimal),
    )


def looks_like_dashboard(text: object) -> bool:
    t = str(text or "")
    return HEADER_MARKER in t and SHOW_ICON in t
