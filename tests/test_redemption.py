import asyncio

import pytest

from grovi.database.models import UNLIMITED_STOCK, Redemption, RewardStatus, RewardType, TxSource
from grovi.database.tx import run_atomic
from grovi.services.errors import InsufficientBalance, NotFound, OutOfStock, Unavailable
from grovi.services.redemption import RedemptionService


@pytest.mark.asyncio
async def test_insufficient_balance_changes_nothing(
    db, make_user, load_user, make_reward, load_reward, count_rows, ledger_rows
):
    user_id = await make_user(coins=50)
    reward_id = await make_reward(price=100, stock=5)

    async with db.session() as s:
        with pytest.raises(InsufficientBalance):
            await RedemptionService.redeem(s, email="player@shop.com", reward_id=reward_id)

    assert (await load_user()).coins == 50
    assert (await load_reward(reward_id)).stock == 5
    assert await count_rows(Redemption) == 0
    assert await ledger_rows(user_id) == []


@pytest.mark.asyncio
async def test_mystery_box_reward(db, make_user, load_user, make_reward, load_reward, count_rows, ledger_rows):
    user_id = await make_user(coins=150)
    reward_id = await make_reward(price=100, stock=2, type=RewardType.MYSTERY_BOX, title="Mystery Box")

    async with db.session() as s:
        res = await RedemptionService.redeem(s, email="player@shop.com", reward_id=reward_id)

    assert (res.coins, res.boxes, res.spin_tickets) == (50, 1, 0)
    assert res.reward_type is RewardType.MYSTERY_BOX

    user = await load_user()
    assert (user.coins, user.boxes) == (50, 1)
    assert (await load_reward(reward_id)).stock == 1
    assert await count_rows(Redemption) == 1

    (row,) = await ledger_rows(user_id)
    assert row.source is TxSource.REDEEM
    assert (row.coins, row.boxes, row.spin_tickets) == (-100, 1, 0)
    assert row.meta["reward_id"] == reward_id


@pytest.mark.asyncio
async def test_spin_ticket_reward_with_unlimited_stock(db, make_user, load_user, make_reward, load_reward):
    await make_user(coins=30)
    reward_id = await make_reward(price=15, stock=UNLIMITED_STOCK, type=RewardType.SPIN_TICKET)

    for _ in range(2):
        async with db.session() as s:
            await RedemptionService.redeem(s, email="player@shop.com", reward_id=reward_id)

    user = await load_user()
    assert (user.coins, user.spin_tickets) == (0, 2)
    assert (await load_reward(reward_id)).stock == UNLIMITED_STOCK


@pytest.mark.asyncio
async def test_exact_balance_is_enough(db, make_user, load_user, make_reward):
    await make_user(coins=100)
    reward_id = await make_reward(price=100, stock=1)

    async with db.session() as s:
        res = await RedemptionService.redeem(s, email="player@shop.com", reward_id=reward_id)

    assert res.coins == 0
    assert (await load_user()).coins == 0


@pytest.mark.asyncio
async def test_inactive_or_missing_reward_is_unavailable(db, make_user, make_reward):
    await make_user(coins=500)
    inactive_id = await make_reward(price=10, status=RewardStatus.INACTIVE)

    for reward_id in (inactive_id, 9999):
        async with db.session() as s:
            with pytest.raises(Unavailable):
                await RedemptionService.redeem(s, email="player@shop.com", reward_id=reward_id)


@pytest.mark.asyncio
async def test_sold_out_reward(db, make_user, load_user, make_reward):
    await make_user(coins=500)
    reward_id = await make_reward(price=10, stock=0)

    async with db.session() as s:
        with pytest.raises(OutOfStock):
            await RedemptionService.redeem(s, email="player@shop.com", reward_id=reward_id)

    assert (await load_user()).coins == 500


@pytest.mark.asyncio
async def test_unknown_user(db, make_reward):
    reward_id = await make_reward(price=10)
    async with db.session() as s:
        with pytest.raises(NotFound):
            await RedemptionService.redeem(s, email="ghost@shop.com", reward_id=reward_id)


@pytest.mark.asyncio
async def test_last_unit_goes_to_exactly_one_of_100_redeemers(db, make_user, make_reward, load_reward, count_rows):
    emails = [f"fan{i}@shop.com" for i in range(100)]
    for email in emails:
        await make_user(email, coins=1000)
    reward_id = await make_reward(price=10, stock=1)

    results = await asyncio.gather(
        *(
            run_atomic(db, lambda s, e=email: RedemptionService.redeem(s, email=e, reward_id=reward_id))
            for email in emails
        ),
        return_exceptions=True,
    )

    wins = [r for r in results if not isinstance(r, BaseException)]
    sold_out = [r for r in results if isinstance(r, OutOfStock)]
    assert len(wins) == 1
    assert len(sold_out) == 99

    assert (await load_reward(reward_id)).stock == 0
    assert await count_rows(Redemption) == 1


@pytest.mark.asyncio
async def test_concurrent_redeems_never_overdraw_one_balance(db, make_user, load_user, make_reward, ledger_rows):
    user_id = await make_user(coins=100)
    reward_id = await make_reward(price=10, stock=UNLIMITED_STOCK)

    results = await asyncio.gather(
        *(
            run_atomic(db, lambda s: RedemptionService.redeem(s, email="player@shop.com", reward_id=reward_id))
            for _ in range(20)
        ),
        return_exceptions=True,
    )

    wins = [r for r in results if not isinstance(r, BaseException)]
    broke = [r for r in results if isinstance(r, InsufficientBalance)]
    assert len(wins) == 10
    assert len(broke) == 10

    assert (await load_user()).coins == 0
    assert sum(r.coins for r in await ledger_rows(user_id)) == -100
