# grovi/database/models/reward.py
from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Enum, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from grovi.database.base import Base

UNLIMITED_STOCK = -1


class RewardType(str, enum.Enum):
    COUPON = "coupon"
    MYSTERY_BOX = "mysteryBox"
    SPIN_TICKET = "spinTicket"
    ITEM = "item"


class RewardStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class Reward(Base):
    __tablename__ = "rewards"
    __table_args__ = (
        CheckConstraint("stock >= -1", name="ck_rewards_stock_range"),
        CheckConstraint("price_coins >= 0", name="ck_rewards_price_nonneg"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(128))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    price_coins: Mapped[int] = mapped_column(Integer)
    type: Mapped[RewardType] = mapped_column(Enum(RewardType, native_enum=False), default=RewardType.ITEM)
    stock: Mapped[int] = mapped_column(Integer, default=0)  # -1 = unlimited
    status: Mapped[RewardStatus] = mapped_column(
        Enum(RewardStatus, native_enum=False),
        default=RewardStatus.ACTIVE,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        server_default=func.now(),
        onupdate=func.now(),
    )


class Redemption(Base):
    __tablename__ = "redemptions"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    reward_id: Mapped[int] = mapped_column(ForeignKey("rewards.id", ondelete="CASCADE"), index=True)
    coins_spent: Mapped[int] = mapped_column(Integer)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), server_default=func.now())
