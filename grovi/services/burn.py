# grovi/services/burn.py
from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from grovi.catalog import RARITY_VALUES
from grovi.database.repo.cards_repo import delete_owned_cards, get_owned_card
from grovi.database.repo.users import get_user_by_email
from grovi.database.tx import transactional
from grovi.services import ledger
from grovi.services.errors import NotFound

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BurnResult:
    added: int
    total_coins: int


class BurnService:
    @staticmethod
    async def burn(session: AsyncSession, *, email: str, card_id: int) -> BurnResult:
        async with transactional(session):
            user = await get_user_by_email(session, email)
            if user is None:
                raise NotFound("User not found")

            card = await get_owned_card(session, user_id=user.id, card_id=card_id)
            if card is None:
                raise NotFound("Card not found")

            rarity, catalog_id = card.rarity, card.catalog_id
            add = RARITY_VALUES[rarity]

            # a concurrent burn/fuse may have consumed it already
            if await delete_owned_cards(session, user_id=user.id, card_ids=[card.id]) != 1:
                raise NotFound("Card not found")

            user.coins = (user.coins or 0) + add
            await session.flush()

            await ledger.record(
                session,
                user_id=user.id,
                coins=add,
                meta=ledger.BurnMeta(rarity=rarity.value, card_id=card_id, catalog_id=catalog_id),
            )

            log.info("Card burned user=%s card=%s rarity=%s", user.id, card_id, rarity.value)
            return BurnResult(added=add, total_coins=user.coins)
