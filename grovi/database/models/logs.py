# grovi/database/models/logs.py
from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from grovi.database.base import Base


class AdminActionLog(Base):
    """
    Log all admin actions for audit.
    Payload is JSON string (dict->json is serialized in services).
    """
    __tablename__ = "admin_action_logs"
    __table_args__ = (
        Index("ix_admin_action_logs_actor_time", "actor_email", "created_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    actor_email: Mapped[str] = mapped_column(String(320), index=True)

    action: Mapped[str] = mapped_column(String(64), index=True)     # e.g. "spin_config_publish"
    target_type: Mapped[str | None] = mapped_column(String(32), nullable=True)  # "spin_config", "box_config"
    target_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    payload_json: Mapped[str | None] = mapped_column(String(4000), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), server_default=func.now())
