# grovi/services/spin.py
from __future__ import annotations

import enum
import hashlib
import logging
import random
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from grovi.database.repo.users import get_user_by_email
from grovi.database.tx import transactional
from grovi.services import ledger
from grovi.services.config_provider import (
    DEFAULT_SPIN_OUTCOMES,
    ConfigProvider,
    SpinOutcome,
    SpinOutcomeType,
)
from grovi.services.cooldown import can_act
from grovi.services.errors import ConfigError, Cooldown, NotFound
from grovi.services.weighted import weighted_choice
from grovi.utils.dates import utc_now_naive

log = logging.getLogger(__name__)


class SpinMode(str, enum.Enum):
    FREE = "free"
    PREMIUM = "premium"


def _parse_mode(mode: SpinMode | str) -> SpinMode:
    """Anything other than premium is a free spin."""
    if isinstance(mode, SpinMode):
        return mode
    return SpinMode.PREMIUM if str(mode).strip().lower() == SpinMode.PREMIUM.value else SpinMode.FREE


def spin_seed(user_id: int, now: datetime) -> str:
    """Audit fingerprint of one spin, stored in its ledger meta."""
    return hashlib.sha256(f"{user_id}{now.isoformat()}".encode()).hexdigest()


@dataclass(frozen=True, slots=True)
class SpinResult:
    outcome: str
    outcome_type: SpinOutcomeType
    prize: int  # coins won
    mystery_boxes: int  # boxes won
    tickets_won: int
    ticket_used: bool
    total_coins: int
    boxes: int
    spin_tickets: int


class SpinService:
    def __init__(
        self,
        config: ConfigProvider,
        *,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = utc_now_naive,
    ) -> None:
        self.config = config
        self.rng = rng or random.Random()
        self.clock = clock

    def roll(self, outcomes: tuple[SpinOutcome, ...]) -> SpinOutcome:
        try:
            return weighted_choice(outcomes, weight=lambda o: o.weight, rng=self.rng)
        except ConfigError as e:
            log.warning("Spin table unusable (%s), falling back to default table", e.message)
            return weighted_choice(DEFAULT_SPIN_OUTCOMES, weight=lambda o: o.weight, rng=self.rng)

    async def spin(self, session: AsyncSession, *, email: str, mode: SpinMode | str) -> SpinResult:
        mode = _parse_mode(mode)
        now = self.clock()

        async with transactional(session):
            # 1) Load user
            user = await get_user_by_email(session, email)
            if user is None:
                raise NotFound("User not found")

            cfg = await self.config.spin_settings(session)

            # 2) Gatekeeping: premium tickets bypass the cooldown and leave its clock alone
            ticket_used = False
            if mode is SpinMode.PREMIUM and (user.spin_tickets or 0) > 0:
                ticket_used = True
            else:
                if mode is SpinMode.FREE:
                    last_at, hours = user.last_free_spin_at, cfg.free_cooldown_hours
                else:
                    last_at, hours = user.last_premium_spin_at, cfg.premium_cooldown_hours
                check = can_act(now, last_at, hours)
                if not check.allowed:
                    raise Cooldown(
                        f"{mode.value.capitalize()} spin cooldown: {check.remaining_minutes} min left",
                        remaining_minutes=check.remaining_minutes,
                    )

            # 3) Roll
            result = self.roll(cfg.outcomes)

            # 4) Apply
            prize = box_inc = ticket_inc = 0
            if result.type is SpinOutcomeType.COINS:
                prize = max(int(result.value or 0), 0)
            elif result.type is SpinOutcomeType.MYSTERY_BOX:
                box_inc = max(int(result.value or 1), 0)
            elif result.type is SpinOutcomeType.EXTRA_SPIN:
                ticket_inc = max(int(result.value or 1), 0)

            ticket_delta = ticket_inc - (1 if ticket_used else 0)

            user.coins = (user.coins or 0) + prize
            user.boxes = (user.boxes or 0) + box_inc
            user.spin_tickets = (user.spin_tickets or 0) + ticket_delta

            if not ticket_used:
                if mode is SpinMode.FREE:
                    user.last_free_spin_at = now
                else:
                    user.last_premium_spin_at = now

            user.spins_used = (user.spins_used or 0) + 1
            await session.flush()  # version check happens here

            # 5) Ledger
            await ledger.record(
                session,
                user_id=user.id,
                coins=prize,
                boxes=box_inc,
                spin_tickets=ticket_delta,
                meta=ledger.SpinMeta(
                    mode=mode.value,
                    outcome=result.label,
                    outcome_type=result.type.value,
                    ticket_used=ticket_used,
                    box_granted=box_inc,
                    tickets_granted=ticket_inc,
                    seed=spin_seed(user.id, now),
                ),
            )

            log.info(
                "Spin user=%s mode=%s outcome=%r ticket_used=%s",
                user.id, mode.value, result.label, ticket_used,
            )

            return SpinResult(
                outcome=result.label,
                outcome_type=result.type,
                prize=prize,
                mystery_boxes=box_inc,
                tickets_won=ticket_inc,
                ticket_used=ticket_used,
                total_coins=user.coins,
                boxes=user.boxes,
                spin_tickets=user.spin_tickets,
            )
