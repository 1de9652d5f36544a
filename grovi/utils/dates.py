# grovi/utils/dates.py
from __future__ import annotations

from datetime import datetime, timezone


def utc_now_naive() -> datetime:
    # stored in DB as naive UTC (timezone=False columns)
    return datetime.now(timezone.utc).replace(tzinfo=None)


def hours_between(later: datetime, earlier: datetime) -> float:
    return (later - earlier).total_seconds() / 3600
