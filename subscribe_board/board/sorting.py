"""
Deterministic ordering of the dashboard content.

Titles and seasons compare case-insensitively with numeric runs compared as
numbers ("S2" < "S10"). The comparator is picked once per process from a
fallback chain: the configured collation locale (``COLLATE_LOCALE``, Chinese
pinyin order by default), then a locale-free natural order, then plain
ordinal order.
"""
from __future__ import annotations

import functools
import locale
import logging
import re
from typing import Any, Callable, List, Optional, Tuple

from ..core.config.load_env_config import DEFAULT_COLLATE_LOCALE
from .models import ShowProgress

logger = logging.getLogger(__name__)

_NUMBER_SPLIT_RE = re.compile(r"(\d+)")
_SAMPLE_STRINGS = ("电视剧", "Show", "show 2", "Ärger")


def _natural_key(text: str, transform: Callable[[str], Any]) -> Tuple[Any, ...]:
    parts = _NUMBER_SPLIT_RE.split(text.casefold())
    # even slots are text, odd slots are digit runs
    return tuple(int(p) if i % 2 else transform(p) for i, p in enumerate(parts))


class Collator:
    name = "base"

    def key(self, text: str) -> Any:
        raise NotImplementedError


class LocaleCollator(Collator):
    """
    Natural order using ``locale.strxfrm`` for the text runs.

    Switches the process ``LC_COLLATE`` to ``locale_name``; raises
    ``locale.Error`` when that locale is not installed.
    """

    name = "locale"

    def __init__(self, locale_name: str = DEFAULT_COLLATE_LOCALE) -> None:
        self.locale_name = locale.setlocale(locale.LC_COLLATE, locale_name)
        for sample in _SAMPLE_STRINGS:
            locale.strxfrm(sample)

    def key(self, text: str) -> Any:
        return _natural_key(text, locale.strxfrm)


class NaturalCollator(Collator):
    name = "natural"

    def key(self, text: str) -> Any:
        return _natural_key(text, str)


class OrdinalCollator(Collator):
    name = "ordinal"

    def key(self, text: str) -> Any:
        return text


@functools.lru_cache(maxsize=None)
def get_collator(locale_name: Optional[str] = None) -> Collator:
    factories: Tuple[Callable[[], Collator], ...] = (
        lambda: LocaleCollator(locale_name or DEFAULT_COLLATE_LOCALE),
        NaturalCollator,
    )
    for name, factory in zip(("locale", "natural"), factories):
        try:
            collator = factory()
        except (locale.Error, ValueError, OSError) as exc:
            logger.warning("collator %s unavailable: %s", name, exc)
            continue
        logger.debug("using %s collator for board content", collator.name)
        return collator
    return OrdinalCollator()


def _year_number(year: str) -> int:
    try:
        return int(str(year).strip())
    except ValueError:
        return 0


def show_sort_key(show: ShowProgress, collator: Collator) -> Tuple[Any, int, Any]:
    return (collator.key(show.title), _year_number(show.year), collator.key(show.season))


def sort_content(content: List[ShowProgress], collator: Optional[Collator] = None) -> None:
    """Sort in place by (title, year, season)."""
    collator = collator or get_collator()
    try:
        content.sort(key=lambda show: show_sort_key(show, collator))
    except (ValueError, TypeError, OSError) as exc:
        logger.warning("%s collation failed (%s), using ordinal order", collator.name, exc)
        ordinal = OrdinalCollator()
        content.sort(key=lambda show: show_sort_key(show, ordinal))
