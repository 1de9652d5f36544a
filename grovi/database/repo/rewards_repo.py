# grovi/database/repo/rewards_repo.py
from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from grovi.database.models import Redemption, Reward


async def get_reward(session: AsyncSession, reward_id: int) -> Reward | None:
    res = await session.execute(select(Reward).where(Reward.id == reward_id))
    return res.scalar_one_or_none()


async def take_one_from_stock(session: AsyncSession, reward_id: int) -> bool:
    """
    Decrements finite stock only if something is left.
    Returns True if a unit was taken. Unlimited (-1) rows never match.
    """
    stmt = (
        update(Reward)
        .where(Reward.id == reward_id, Reward.stock > 0)
        .values(stock=Reward.stock - 1)
        .execution_options(synchronize_session=False)
    )
    res = await session.execute(stmt)
    return (res.rowcount or 0) > 0


async def add_redemption(
    session: AsyncSession, *, user_id: int, reward_id: int, coins_spent: int
) -> Redemption:
    row = Redemption(user_id=user_id, reward_id=reward_id, coins_spent=coins_spent)
    session.add(row)
    await session.flush()
    return row
