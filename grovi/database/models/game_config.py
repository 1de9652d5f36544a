# grovi/database/models/game_config.py
from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, Float, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from grovi.database.base import Base


class SpinConfig(Base):
    """
    Versioned spin table, admin-owned.
    weights: [{"label", "type", "value", "weight"}, ...] in wheel order.
    The newest published row is the active one.
    """
    __tablename__ = "spin_configs"
    __table_args__ = (
        Index("ix_spin_configs_published_updated", "is_published", "updated_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(64), default="default")
    is_published: Mapped[bool] = mapped_column(Boolean, default=True)
    version: Mapped[int] = mapped_column(Integer, default=1)

    weights: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    free_cooldown_hours: Mapped[float] = mapped_column(Float, default=24)
    premium_cooldown_hours: Mapped[float] = mapped_column(Float, default=6)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        server_default=func.now(),
        onupdate=func.now(),
    )


class BoxConfig(Base):
    """
    Versioned mystery-box drop table, admin-owned.
    pools: [{"rarity", "weight", "card_ids"}, ...]; empty card_ids = whole tier.
    """
    __tablename__ = "box_configs"
    __table_args__ = (
        Index("ix_box_configs_published_updated", "is_published", "updated_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(64), default="default")
    is_published: Mapped[bool] = mapped_column(Boolean, default=True)
    version: Mapped[int] = mapped_column(Integer, default=1)

    pools: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        server_default=func.now(),
        onupdate=func.now(),
    )
