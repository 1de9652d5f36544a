# grovi/services/redemption.py
from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from grovi.database.models import UNLIMITED_STOCK, RewardStatus, RewardType
from grovi.database.repo.rewards_repo import add_redemption, get_reward, take_one_from_stock
from grovi.database.repo.users import get_user_by_email
from grovi.database.tx import transactional
from grovi.services import ledger
from grovi.services.errors import InsufficientBalance, NotFound, OutOfStock, Unavailable

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RedeemResult:
    coins: int
    boxes: int
    spin_tickets: int
    reward_id: int
    reward_title: str
    reward_type: RewardType
    redemption_id: int


class RedemptionService:
    @staticmethod
    async def redeem(session: AsyncSession, *, email: str, reward_id: int) -> RedeemResult:
        """
        Debit coins for a catalog reward. Stock, balance, side effects, the
        redemption row and the ledger row commit together or not at all.
        """
        async with transactional(session):
            user = await get_user_by_email(session, email)
            if user is None:
                raise NotFound("User not found")

            reward = await get_reward(session, reward_id)
            if reward is None or reward.status != RewardStatus.ACTIVE:
                raise Unavailable("Reward unavailable")

            finite = reward.stock != UNLIMITED_STOCK
            if finite and reward.stock <= 0:
                raise OutOfStock("Out of stock")

            price = int(reward.price_coins)
            if (user.coins or 0) < price:
                raise InsufficientBalance("Not enough coins")

            # Stock first: the conditional update is the serialization point for
            # concurrent redeemers of the last unit.
            if finite and not await take_one_from_stock(session, reward.id):
                raise OutOfStock("Out of stock")

            box_inc = 1 if reward.type == RewardType.MYSTERY_BOX else 0
            ticket_inc = 1 if reward.type == RewardType.SPIN_TICKET else 0

            user.coins -= price
            user.boxes = (user.boxes or 0) + box_inc
            user.spin_tickets = (user.spin_tickets or 0) + ticket_inc
            await session.flush()

            redemption = await add_redemption(
                session, user_id=user.id, reward_id=reward.id, coins_spent=price
            )

            await ledger.record(
                session,
                user_id=user.id,
                coins=-price,
                boxes=box_inc,
                spin_tickets=ticket_inc,
                meta=ledger.RedeemMeta(
                    reward_id=reward.id,
                    reward_title=reward.title,
                    reward_type=reward.type.value,
                ),
            )

            log.info("Reward redeemed user=%s reward=%s price=%s", user.id, reward.id, price)

            return RedeemResult(
                coins=user.coins,
                boxes=user.boxes,
                spin_tickets=user.spin_tickets,
                reward_id=reward.id,
                reward_title=reward.title,
                reward_type=reward.type,
                redemption_id=redemption.id,
            )
