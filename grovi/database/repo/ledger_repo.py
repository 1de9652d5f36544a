# grovi/database/repo/ledger_repo.py
from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from grovi.database.models import LedgerEntry, TxSource


@dataclass(frozen=True, slots=True)
class LedgerTotals:
    coins: int
    boxes: int
    spin_tickets: int
    entries: int


async def list_entries(session: AsyncSession, *, user_id: int, limit: int = 100) -> list[LedgerEntry]:
    res = await session.execute(
        select(LedgerEntry)
        .where(LedgerEntry.user_id == user_id)
        .order_by(LedgerEntry.id.desc())
        .limit(limit)
    )
    return list(res.scalars().all())


async def totals_for_user(session: AsyncSession, *, user_id: int) -> LedgerTotals:
    res = await session.execute(
        select(
            func.coalesce(func.sum(LedgerEntry.coins), 0),
            func.coalesce(func.sum(LedgerEntry.boxes), 0),
            func.coalesce(func.sum(LedgerEntry.spin_tickets), 0),
            func.count(LedgerEntry.id),
        ).where(LedgerEntry.user_id == user_id)
    )
    coins, boxes, tickets, n = res.one()
    return LedgerTotals(coins=int(coins), boxes=int(boxes), spin_tickets=int(tickets), entries=int(n))


async def ref_exists(session: AsyncSession, *, source: TxSource, ref: str) -> bool:
    res = await session.execute(
        select(LedgerEntry.id).where(LedgerEntry.source == source, LedgerEntry.ref == ref)
    )
    return res.first() is not None
