# grovi/database/models/user.py
from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, CheckConstraint, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from grovi.database.base import Base

if TYPE_CHECKING:
    from grovi.database.models.card import Card


class User(Base):
    """
    Balance aggregate. Every write is version-checked (optimistic lock), so two
    requests that loaded the same snapshot can never both commit.
    """
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("coins >= 0", name="ck_users_coins_nonneg"),
        CheckConstraint("boxes >= 0", name="ck_users_boxes_nonneg"),
        CheckConstraint("spin_tickets >= 0", name="ck_users_spin_tickets_nonneg"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(320), unique=True, index=True)  # always lowercase

    coins: Mapped[int] = mapped_column(Integer, default=0)
    boxes: Mapped[int] = mapped_column(Integer, default=0)  # unopened mystery boxes
    spin_tickets: Mapped[int] = mapped_column(Integer, default=0)  # premium cooldown bypass

    spins_used: Mapped[int] = mapped_column(Integer, default=0)
    boxes_opened: Mapped[int] = mapped_column(Integer, default=0)
    last_free_spin_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    last_premium_spin_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)

    banned: Mapped[bool] = mapped_column(Boolean, default=False)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        server_default=func.now(),
        onupdate=func.now(),
    )

    cards: Mapped[list["Card"]] = relationship(back_populates="user", cascade="all, delete-orphan")

    __mapper_args__ = {"version_id_col": version}
