from __future__ import annotations

from datetime import datetime, timezone
from zoneinfo import ZoneInfo


def _localize(dt: datetime | None, time_zone: str) -> datetime:
    if dt is None:
        dt = datetime.now(timezone.utc)
    elif dt.tzinfo is None:
        # naive datetimes are taken as UTC
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(ZoneInfo(time_zone))


def format_date_key(dt: datetime | None, time_zone: str) -> str:
    """
    Logical day of the dashboard in the configured zone.

    >>> format_date_key(datetime(2025, 1, 5, 17, 0, tzinfo=timezone.utc), "Asia/Shanghai")
    '2025-01-06'
    """
    return _localize(dt, time_zone).strftime("%Y-%m-%d")


def format_date_time(dt: datetime | None, time_zone: str) -> str:
    """Timestamp shown on the dashboard meta line, e.g. ``2025/01/06 01:00:00``."""
    return _localize(dt, time_zone).strftime("%Y/%m/%d %H:%M:%S")
