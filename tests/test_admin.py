import json

import pytest
from sqlalchemy import select

from grovi.database.models import AdminActionLog, Rarity
from grovi.database.repo.config_repo import create_spin_config
from grovi.services.admin import AdminService
from grovi.services.config_provider import ConfigProvider, SpinOutcomeType
from grovi.services.errors import InvalidRequest, NotFound
from grovi.services.ledger import RedeemMeta
from grovi.services.redemption import RedemptionService

ADMIN = "ops@shop.com"

WHEEL = [
    {"label": "+2 Coins", "type": "coins", "value": 2, "weight": 70},
    {"label": "Bonus Spin", "type": "extra_spin", "value": 1, "weight": 20},
    {"label": "Better luck", "type": "nothing", "value": 0, "weight": 10},
]


class ManualClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.mark.asyncio
async def test_newest_published_spin_config_is_active(db, config):
    admin = AdminService(config)

    async with db.session() as s:
        first = await admin.publish_spin_config(s, actor_email=ADMIN, weights=WHEEL[:1])
    async with db.session() as s:
        second = await admin.publish_spin_config(
            s, actor_email=ADMIN, weights=WHEEL, free_cooldown_hours=12, premium_cooldown_hours=3
        )

    assert (first.version, second.version) == (1, 2)

    async with db.session() as s:
        settings = await config.spin_settings(s)

    assert settings.version == 2
    assert settings.free_cooldown_hours == 12
    assert settings.premium_cooldown_hours == 3
    assert [o.type for o in settings.outcomes] == [
        SpinOutcomeType.COINS,
        SpinOutcomeType.EXTRA_SPIN,
        SpinOutcomeType.NOTHING,
    ]

    async with db.session() as s:
        logs = (await s.execute(select(AdminActionLog).order_by(AdminActionLog.id))).scalars().all()
    assert [l.action for l in logs] == ["spin_config_publish", "spin_config_publish"]
    assert logs[1].actor_email == ADMIN
    assert json.loads(logs[1].payload_json)["version"] == 2


@pytest.mark.asyncio
async def test_box_config_publish(db, config):
    async with db.session() as s:
        cfg = await AdminService(config).publish_box_config(
            s,
            actor_email=ADMIN,
            pools=[
                {"rarity": "common", "weight": 0.9},
                {"rarity": "Legendary", "weight": 0.1, "cardIds": [32]},
            ],
        )

    assert cfg.version == 1
    async with db.session() as s:
        settings = await config.box_settings(s)

    assert [p.rarity for p in settings.pools] == [Rarity.COMMON, Rarity.LEGENDARY]
    assert settings.pools[1].card_ids == (32,)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "weights",
    [
        [],
        [{"type": "coins", "value": 1, "weight": -1}],
        [{"type": "jackpot", "value": 1, "weight": 1}],
        [{"type": "coins", "value": -5, "weight": 1}],
    ],
)
async def test_invalid_spin_weights_are_rejected(db, config, weights, count_rows):
    async with db.session() as s:
        with pytest.raises(InvalidRequest):
            await AdminService(config).publish_spin_config(s, actor_email=ADMIN, weights=weights)
    assert await count_rows(AdminActionLog) == 0


@pytest.mark.asyncio
async def test_negative_cooldown_is_rejected(db, config):
    async with db.session() as s:
        with pytest.raises(InvalidRequest):
            await AdminService(config).publish_spin_config(
                s, actor_email=ADMIN, weights=WHEEL, free_cooldown_hours=-1
            )


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "pools",
    [
        [],
        [{"rarity": "Mythic", "weight": 1}],
        [{"rarity": "Rare", "weight": -0.5}],
        [{"rarity": "Rare", "weight": 0.5}, {"rarity": "rare", "weight": 0.5}],
    ],
)
async def test_invalid_box_pools_are_rejected(db, config, pools):
    async with db.session() as s:
        with pytest.raises(InvalidRequest):
            await AdminService(config).publish_box_config(s, actor_email=ADMIN, pools=pools)


@pytest.mark.asyncio
async def test_cache_serves_snapshot_until_stale_or_invalidated(db):
    clock = ManualClock()
    config = ConfigProvider(ttl_seconds=60, clock=clock)

    async with db.session() as s:
        assert (await config.spin_settings(s)).version == 0

    # written behind the cache's back
    async with db.session() as s:
        async with s.begin():
            await create_spin_config(s, weights=WHEEL, free_cooldown_hours=1, premium_cooldown_hours=1)

    async with db.session() as s:
        assert (await config.spin_settings(s)).version == 0

    clock.now += 61
    async with db.session() as s:
        assert (await config.spin_settings(s)).version == 1

    async with db.session() as s:
        async with s.begin():
            await create_spin_config(s, weights=WHEEL, free_cooldown_hours=1, premium_cooldown_hours=1)

    config.invalidate()
    async with db.session() as s:
        assert (await config.spin_settings(s)).version == 2


@pytest.mark.asyncio
async def test_user_ledger(db, config, make_user, make_reward):
    await make_user(coins=40)
    reward_id = await make_reward(price=25, title="Sticker pack")

    async with db.session() as s:
        await RedemptionService.redeem(s, email="player@shop.com", reward_id=reward_id)

    async with db.session() as s:
        report = await AdminService.user_ledger(s, email="PLAYER@shop.com")

    assert report.coins == 15
    assert report.totals.coins == -25
    assert report.totals.entries == 1
    (line,) = report.entries
    assert line.source == "redeem"
    assert isinstance(line.meta, RedeemMeta)
    assert line.meta.reward_title == "Sticker pack"


@pytest.mark.asyncio
async def test_user_ledger_unknown_user(db):
    async with db.session() as s:
        with pytest.raises(NotFound):
            await AdminService.user_ledger(s, email="ghost@shop.com")
