# grovi/database/repo/product_map_repo.py
from __future__ import annotations

from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from grovi.database.models import ProductCardMap


async def active_mappings(session: AsyncSession, product_ids: Iterable[int]) -> dict[int, ProductCardMap]:
    ids = sorted({int(p) for p in product_ids})
    if not ids:
        return {}
    res = await session.execute(
        select(ProductCardMap).where(
            ProductCardMap.product_id.in_(ids),
            ProductCardMap.active.is_(True),
        )
    )
    return {m.product_id: m for m in res.scalars().all()}
