# grovi/database/repo/cards_repo.py
from __future__ import annotations

from typing import Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from grovi.catalog import CatalogCard
from grovi.database.models import Card, CardOrigin, Rarity


async def mint_card(
    session: AsyncSession,
    *,
    user_id: int,
    card: CatalogCard,
    origin: CardOrigin,
    coins_earned: int = 0,
) -> Card:
    row = Card(
        user_id=user_id,
        catalog_id=card.id,
        name=card.name,
        rarity=card.rarity,
        coins_earned=coins_earned,
        origin=origin,
    )
    session.add(row)
    await session.flush()  # row.id ready
    return row


async def get_owned_card(session: AsyncSession, *, user_id: int, card_id: int) -> Card | None:
    res = await session.execute(
        select(Card).where(Card.id == card_id, Card.user_id == user_id)
    )
    return res.scalar_one_or_none()


async def find_cards_of_rarity(
    session: AsyncSession, *, user_id: int, rarity: Rarity, limit: int
) -> list[Card]:
    res = await session.execute(
        select(Card)
        .where(Card.user_id == user_id, Card.rarity == rarity)
        .order_by(Card.id)
        .limit(limit)
    )
    return list(res.scalars().all())


async def delete_owned_cards(session: AsyncSession, *, user_id: int, card_ids: Sequence[int]) -> int:
    """
    Deletes only cards still owned by user_id.
    Returns how many rows went away (callers compare with len(card_ids)).
    """
    if not card_ids:
        return 0
    res = await session.execute(
        delete(Card).where(Card.user_id == user_id, Card.id.in_(list(card_ids)))
    )
    return res.rowcount or 0
