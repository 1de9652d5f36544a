# grovi/database/models/ledger.py
from __future__ import annotations

import enum
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Enum, ForeignKey, Index, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from grovi.database.base import Base


class TxSource(str, enum.Enum):
    SPIN = "spin"
    BOX_OPEN = "box-open"
    BURN = "burn"
    FUSE = "fuse"
    REDEEM = "redeem"
    WEBHOOK = "webhook"


class LedgerEntry(Base):
    """
    Immutable ledger of balance effects. Great for audit + admin verification.
    Deltas are signed; sum(coins) per user equals the coins the user gained
    since creation.
    """
    __tablename__ = "ledger_entries"
    __table_args__ = (
        Index("ix_ledger_user_time", "user_id", "created_at"),

        # Anti-duplicate protection for externally keyed events (order ids).
        # NULL refs never collide.
        UniqueConstraint("source", "ref", name="uq_ledger_source_ref"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)

    source: Mapped[TxSource] = mapped_column(Enum(TxSource, native_enum=False), index=True)
    coins: Mapped[int] = mapped_column(Integer, default=0)
    boxes: Mapped[int] = mapped_column(Integer, default=0)
    spin_tickets: Mapped[int] = mapped_column(Integer, default=0)

    ref: Mapped[str | None] = mapped_column(String(128), nullable=True)
    meta: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), server_default=func.now())
