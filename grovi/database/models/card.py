# grovi/database/models/card.py
from __future__ import annotations

import enum
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from grovi.database.base import Base

if TYPE_CHECKING:
    from grovi.database.models.user import User


class Rarity(str, enum.Enum):
    COMMON = "Common"
    RARE = "Rare"
    EPIC = "Epic"
    LEGENDARY = "Legendary"


class CardOrigin(str, enum.Enum):
    BOX = "box"
    FUSE = "fuse"
    ORDER = "order"
    ADMIN = "admin"


class Card(Base):
    """
    A card owned by one user. Never edited: minted by box/fuse/order,
    deleted by burn/fuse.
    """
    __tablename__ = "cards"
    __table_args__ = (
        Index("ix_cards_user_rarity", "user_id", "rarity"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)

    catalog_id: Mapped[int | None] = mapped_column(Integer, nullable=True)  # static catalog id
    name: Mapped[str] = mapped_column(String(128))
    rarity: Mapped[Rarity] = mapped_column(Enum(Rarity, native_enum=False), index=True)
    coins_earned: Mapped[int] = mapped_column(Integer, default=0)  # value paid at award time
    origin: Mapped[CardOrigin] = mapped_column(Enum(CardOrigin, native_enum=False), default=CardOrigin.BOX)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), server_default=func.now())

    user: Mapped["User"] = relationship(back_populates="cards")
