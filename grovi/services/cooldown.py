# grovi/services/cooldown.py
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime

from grovi.utils.dates import hours_between


@dataclass(frozen=True, slots=True)
class CooldownCheck:
    allowed: bool
    remaining_minutes: int = 0


def can_act(now: datetime, last_action_at: datetime | None, cooldown_hours: float) -> CooldownCheck:
    """
    Allowed when there is no previous action or at least cooldown_hours have
    elapsed. remaining_minutes is rounded up to the next whole minute.
    """
    if last_action_at is None:
        return CooldownCheck(allowed=True)

    elapsed = hours_between(now, last_action_at)
    if elapsed >= cooldown_hours:
        return CooldownCheck(allowed=True)

    remaining = math.ceil((cooldown_hours - elapsed) * 60)
    return CooldownCheck(allowed=False, remaining_minutes=remaining)
