# grovi/database/repo/config_repo.py
from __future__ import annotations

from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from grovi.database.models import BoxConfig, SpinConfig


async def get_active_spin_config(session: AsyncSession) -> SpinConfig | None:
    """Newest published spin config, or None (engine then uses its defaults)."""
    res = await session.execute(
        select(SpinConfig)
        .where(SpinConfig.is_published.is_(True))
        .order_by(SpinConfig.updated_at.desc(), SpinConfig.id.desc())
        .limit(1)
    )
    return res.scalar_one_or_none()


async def get_active_box_config(session: AsyncSession) -> BoxConfig | None:
    res = await session.execute(
        select(BoxConfig)
        .where(BoxConfig.is_published.is_(True))
        .order_by(BoxConfig.updated_at.desc(), BoxConfig.id.desc())
        .limit(1)
    )
    return res.scalar_one_or_none()


async def create_spin_config(
    session: AsyncSession,
    *,
    weights: list[dict[str, Any]],
    free_cooldown_hours: float,
    premium_cooldown_hours: float,
    name: str = "default",
) -> SpinConfig:
    current = await session.scalar(select(func.max(SpinConfig.version)))
    cfg = SpinConfig(
        name=name,
        is_published=True,
        version=int(current or 0) + 1,
        weights=weights,
        free_cooldown_hours=free_cooldown_hours,
        premium_cooldown_hours=premium_cooldown_hours,
    )
    session.add(cfg)
    await session.flush()
    return cfg


async def create_box_config(
    session: AsyncSession,
    *,
    pools: list[dict[str, Any]],
    name: str = "default",
) -> BoxConfig:
    current = await session.scalar(select(func.max(BoxConfig.version)))
    cfg = BoxConfig(
        name=name,
        is_published=True,
        version=int(current or 0) + 1,
        pools=pools,
    )
    session.add(cfg)
    await session.flush()
    return cfg
