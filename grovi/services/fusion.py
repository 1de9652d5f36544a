# grovi/services/fusion.py
from __future__ import annotations

import logging
import random
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from grovi.catalog import next_rarity, parse_rarity, pool_for
from grovi.database.models import CardOrigin, Rarity
from grovi.database.repo.cards_repo import delete_owned_cards, find_cards_of_rarity, mint_card
from grovi.database.repo.users import get_user_by_email
from grovi.database.tx import transactional
from grovi.services import ledger
from grovi.services.errors import InsufficientMaterials, InvalidTier, NotFound

log = logging.getLogger(__name__)

FUSION_COST = 3


@dataclass(frozen=True, slots=True)
class FuseResult:
    id: int  # owned card row
    catalog_id: int
    name: str
    rarity: Rarity
    consumed_card_ids: tuple[int, ...]


class FusionService:
    def __init__(self, *, rng: random.Random | None = None) -> None:
        self.rng = rng or random.Random()

    async def fuse(self, session: AsyncSession, *, email: str, rarity: Rarity | str) -> FuseResult:
        from_rarity = parse_rarity(rarity)
        if from_rarity is None:
            raise InvalidTier(f"Unknown rarity: {rarity}")
        to_rarity = next_rarity(from_rarity)
        if to_rarity is None:
            raise InvalidTier("Cannot fuse highest rarity")

        async with transactional(session):
            user = await get_user_by_email(session, email)
            if user is None:
                raise NotFound("User not found")

            owned = await find_cards_of_rarity(
                session, user_id=user.id, rarity=from_rarity, limit=FUSION_COST
            )
            if len(owned) < FUSION_COST:
                raise InsufficientMaterials(f"Need {FUSION_COST} cards to fuse")

            consumed = tuple(c.id for c in owned)
            if await delete_owned_cards(session, user_id=user.id, card_ids=consumed) != FUSION_COST:
                # lost a race with another burn/fuse; nothing is kept
                raise InsufficientMaterials(f"Need {FUSION_COST} cards to fuse")

            pool = pool_for(to_rarity)
            drop = pool[int(self.rng.random() * len(pool))]
            minted = await mint_card(session, user_id=user.id, card=drop, origin=CardOrigin.FUSE)

            await ledger.record(
                session,
                user_id=user.id,
                meta=ledger.FuseMeta(
                    rarity=from_rarity.value,
                    into_rarity=to_rarity.value,
                    consumed_card_ids=list(consumed),
                    minted_card_id=minted.id,
                    card_name=drop.name,
                ),
            )

            log.info("Fused user=%s %s -> %s (%r)", user.id, from_rarity.value, to_rarity.value, drop.name)

            return FuseResult(
                id=minted.id,
                catalog_id=drop.id,
                name=drop.name,
                rarity=drop.rarity,
                consumed_card_ids=consumed,
            )
