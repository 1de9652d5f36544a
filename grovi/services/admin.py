# grovi/services/admin.py
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from grovi.database.models import AdminActionLog, BoxConfig, SpinConfig
from grovi.database.repo.config_repo import create_box_config, create_spin_config
from grovi.database.repo.ledger_repo import LedgerTotals, list_entries, totals_for_user
from grovi.database.repo.users import get_user_by_email
from grovi.database.tx import transactional
from grovi.services.config_provider import ConfigProvider, parse_rarity_pool, parse_spin_outcome
from grovi.services.errors import InvalidRequest, NotFound
from grovi.services.ledger import LedgerMeta, meta_of

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LedgerLine:
    id: int
    source: str
    coins: int
    boxes: int
    spin_tickets: int
    ref: str | None
    meta: LedgerMeta
    created_at: str


@dataclass(frozen=True, slots=True)
class UserLedger:
    email: str
    coins: int
    boxes: int
    spin_tickets: int
    totals: LedgerTotals
    entries: list[LedgerLine]


def _validate_spin_weights(weights: Sequence[dict[str, Any]]) -> list[dict[str, Any]]:
    if not weights:
        raise InvalidRequest("weights must not be empty")
    out: list[dict[str, Any]] = []
    for i, raw in enumerate(weights):
        try:
            o = parse_spin_outcome(raw)
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidRequest(f"weights[{i}] is invalid: {e}") from e
        if o.weight < 0:
            raise InvalidRequest(f"weights[{i}].weight must be >= 0")
        if o.value < 0:
            raise InvalidRequest(f"weights[{i}].value must be >= 0")
        out.append({"label": o.label, "type": o.type.value, "value": o.value, "weight": o.weight})
    return out


def _validate_box_pools(pools: Sequence[dict[str, Any]]) -> list[dict[str, Any]]:
    if not pools:
        raise InvalidRequest("pools must not be empty")
    out: list[dict[str, Any]] = []
    seen: set[str] = set()
    for i, raw in enumerate(pools):
        try:
            p = parse_rarity_pool(raw)
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidRequest(f"pools[{i}] is invalid: {e}") from e
        if p.weight < 0:
            raise InvalidRequest(f"pools[{i}].weight must be >= 0")
        if p.rarity.value in seen:
            raise InvalidRequest(f"pools[{i}]: duplicate rarity {p.rarity.value}")
        seen.add(p.rarity.value)
        out.append({"rarity": p.rarity.value, "weight": p.weight, "card_ids": list(p.card_ids)})
    return out


class AdminService:
    def __init__(self, config: ConfigProvider) -> None:
        self.config = config

    @staticmethod
    async def _audit(
        session: AsyncSession,
        *,
        actor_email: str,
        action: str,
        target_type: str,
        target_id: int,
        payload: dict[str, Any],
    ) -> None:
        session.add(
            AdminActionLog(
                actor_email=actor_email,
                action=action,
                target_type=target_type,
                target_id=target_id,
                payload_json=json.dumps(payload, default=str)[:4000],
            )
        )
        await session.flush()

    async def publish_spin_config(
        self,
        session: AsyncSession,
        *,
        actor_email: str,
        weights: Sequence[dict[str, Any]],
        free_cooldown_hours: float = 24,
        premium_cooldown_hours: float = 6,
        name: str = "default",
    ) -> SpinConfig:
        clean = _validate_spin_weights(weights)
        if free_cooldown_hours < 0 or premium_cooldown_hours < 0:
            raise InvalidRequest("cooldown hours must be >= 0")

        async with transactional(session):
            cfg = await create_spin_config(
                session,
                weights=clean,
                free_cooldown_hours=float(free_cooldown_hours),
                premium_cooldown_hours=float(premium_cooldown_hours),
                name=name,
            )
            await self._audit(
                session,
                actor_email=actor_email,
                action="spin_config_publish",
                target_type="spin_config",
                target_id=cfg.id,
                payload={
                    "version": cfg.version,
                    "weights": clean,
                    "free_cooldown_hours": cfg.free_cooldown_hours,
                    "premium_cooldown_hours": cfg.premium_cooldown_hours,
                },
            )

        self.config.invalidate()
        log.info("Spin config v%s published by %s", cfg.version, actor_email)
        return cfg

    async def publish_box_config(
        self,
        session: AsyncSession,
        *,
        actor_email: str,
        pools: Sequence[dict[str, Any]],
        name: str = "default",
    ) -> BoxConfig:
        clean = _validate_box_pools(pools)

        async with transactional(session):
            cfg = await create_box_config(session, pools=clean, name=name)
            await self._audit(
                session,
                actor_email=actor_email,
                action="box_config_publish",
                target_type="box_config",
                target_id=cfg.id,
                payload={"version": cfg.version, "pools": clean},
            )

        self.config.invalidate()
        log.info("Box config v%s published by %s", cfg.version, actor_email)
        return cfg

    @staticmethod
    async def user_ledger(session: AsyncSession, *, email: str, limit: int = 100) -> UserLedger:
        user = await get_user_by_email(session, email)
        if user is None:
            raise NotFound("User not found")

        totals = await totals_for_user(session, user_id=user.id)
        rows = await list_entries(session, user_id=user.id, limit=limit)

        return UserLedger(
            email=user.email,
            coins=user.coins,
            boxes=user.boxes,
            spin_tickets=user.spin_tickets,
            totals=totals,
            entries=[
                LedgerLine(
                    id=r.id,
                    source=r.source.value,
                    coins=r.coins,
                    boxes=r.boxes,
                    spin_tickets=r.spin_tickets,
                    ref=r.ref,
                    meta=meta_of(r),
                    created_at=r.created_at.isoformat() if r.created_at else "",
                )
                for r in rows
            ],
        )

