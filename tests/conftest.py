from __future__ import annotations

from typing import Any

import pytest
import pytest_asyncio
from sqlalchemy import func, select

from grovi.catalog import get_card
from grovi.database import Database
from grovi.database.models import (
    Card,
    CardOrigin,
    LedgerEntry,
    ProductCardMap,
    Reward,
    RewardStatus,
    RewardType,
    User,
)
from grovi.database.repo.cards_repo import mint_card
from grovi.database.repo.users import get_user_by_email
from grovi.services.config_provider import ConfigProvider


@pytest_asyncio.fixture
async def db(tmp_path):
    # file-backed so concurrent sessions really are separate connections
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'grovi-test.db'}")
    await database.init_models()
    try:
        yield database
    finally:
        await database.close()


@pytest.fixture
def config() -> ConfigProvider:
    return ConfigProvider(ttl_seconds=60)


@pytest.fixture
def make_user(db):
    async def _make(email: str = "player@shop.com", **fields: Any) -> int:
        values = {"coins": 0, "boxes": 0, "spin_tickets": 0, **fields}
        async with db.session() as s:
            async with s.begin():
                user = User(email=email, **values)
                s.add(user)
            return user.id

    return _make


@pytest.fixture
def load_user(db):
    async def _load(email: str = "player@shop.com") -> User | None:
        async with db.session() as s:
            return await get_user_by_email(s, email)

    return _load


@pytest.fixture
def make_reward(db):
    async def _make(
        *,
        price: int = 100,
        stock: int = 5,
        type: RewardType = RewardType.COUPON,
        status: RewardStatus = RewardStatus.ACTIVE,
        title: str = "10% off coupon",
    ) -> int:
        async with db.session() as s:
            async with s.begin():
                reward = Reward(title=title, price_coins=price, stock=stock, type=type, status=status)
                s.add(reward)
            return reward.id

    return _make


@pytest.fixture
def load_reward(db):
    async def _load(reward_id: int) -> Reward | None:
        async with db.session() as s:
            return await s.get(Reward, reward_id)

    return _load


@pytest.fixture
def give_cards(db):
    async def _give(user_id: int, catalog_ids: list[int]) -> list[int]:
        ids: list[int] = []
        async with db.session() as s:
            async with s.begin():
                for cid in catalog_ids:
                    card = await mint_card(s, user_id=user_id, card=get_card(cid), origin=CardOrigin.ADMIN)
                    ids.append(card.id)
        return ids

    return _give


@pytest.fixture
def owned_cards(db):
    async def _owned(user_id: int) -> list[Card]:
        async with db.session() as s:
            res = await s.execute(select(Card).where(Card.user_id == user_id).order_by(Card.id))
            return list(res.scalars().all())

    return _owned


@pytest.fixture
def ledger_rows(db):
    async def _rows(user_id: int) -> list[LedgerEntry]:
        async with db.session() as s:
            res = await s.execute(
                select(LedgerEntry).where(LedgerEntry.user_id == user_id).order_by(LedgerEntry.id)
            )
            return list(res.scalars().all())

    return _rows


@pytest.fixture
def count_rows(db):
    async def _count(model) -> int:
        async with db.session() as s:
            return int(await s.scalar(select(func.count()).select_from(model)))

    return _count


@pytest.fixture
def map_product(db):
    async def _map(product_id: int, catalog_card_id: int, *, active: bool = True) -> None:
        async with db.session() as s:
            async with s.begin():
                s.add(ProductCardMap(product_id=product_id, catalog_card_id=catalog_card_id, active=active))

    return _map
