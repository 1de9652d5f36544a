# grovi/services/box.py
from __future__ import annotations

import logging
import random
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from grovi.catalog import RARITY_VALUES, CatalogCard, pool_for
from grovi.database.models import CardOrigin
from grovi.database.repo.cards_repo import mint_card
from grovi.database.repo.users import get_user_by_email
from grovi.database.tx import transactional
from grovi.services import ledger
from grovi.services.config_provider import DEFAULT_BOX_SETTINGS, ConfigProvider, RarityPool
from grovi.services.errors import ConfigError, NoInventory, NotFound
from grovi.services.weighted import weighted_choice

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BoxOpenResult:
    card: CatalogCard
    owned_card_id: int
    boxes_left: int
    reward_coins: int
    total_coins: int


class BoxService:
    def __init__(self, config: ConfigProvider, *, rng: random.Random | None = None) -> None:
        self.config = config
        self.rng = rng or random.Random()

    def roll_pool(self, pools: tuple[RarityPool, ...]) -> RarityPool:
        try:
            return weighted_choice(pools, weight=lambda p: p.weight, rng=self.rng)
        except ConfigError as e:
            log.warning("Box table unusable (%s), falling back to default table", e.message)
            return weighted_choice(DEFAULT_BOX_SETTINGS.pools, weight=lambda p: p.weight, rng=self.rng)

    def draw_card(self, pool: RarityPool) -> CatalogCard:
        cards = pool_for(pool.rarity, pool.card_ids)
        return cards[int(self.rng.random() * len(cards))]

    async def open_box(self, session: AsyncSession, *, email: str) -> BoxOpenResult:
        async with transactional(session):
            user = await get_user_by_email(session, email)
            if user is None:
                raise NotFound("User not found")
            if (user.boxes or 0) <= 0:
                raise NoInventory("No boxes available")

            cfg = await self.config.box_settings(session)

            pool = self.roll_pool(cfg.pools)
            drop = self.draw_card(pool)
            reward = RARITY_VALUES.get(drop.rarity, 0)

            owned = await mint_card(
                session,
                user_id=user.id,
                card=drop,
                origin=CardOrigin.BOX,
                coins_earned=reward,
            )

            user.boxes -= 1
            user.boxes_opened = (user.boxes_opened or 0) + 1
            user.coins = (user.coins or 0) + reward
            await session.flush()

            await ledger.record(
                session,
                user_id=user.id,
                coins=reward,
                boxes=-1,
                meta=ledger.BoxOpenMeta(
                    rarity=drop.rarity.value,
                    card_name=drop.name,
                    catalog_id=drop.id,
                ),
            )

            log.info("Box opened user=%s rarity=%s card=%r", user.id, drop.rarity.value, drop.name)

            return BoxOpenResult(
                card=drop,
                owned_card_id=owned.id,
                boxes_left=user.boxes,
                reward_coins=reward,
                total_coins=user.coins,
            )
