# grovi/database/models/product_card.py
from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from grovi.database.base import Base


class ProductCardMap(Base):
    """Storefront product id -> catalog card minted when that product is ordered."""
    __tablename__ = "product_card_maps"

    id: Mapped[int] = mapped_column(primary_key=True)
    product_id: Mapped[int] = mapped_column(Integer, unique=True, index=True)
    catalog_card_id: Mapped[int] = mapped_column(Integer)
    title: Mapped[str | None] = mapped_column(String(128), nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), server_default=func.now())
