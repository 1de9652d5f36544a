# grovi/services/config_provider.py
from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable

from sqlalchemy.ext.asyncio import AsyncSession

from grovi.catalog import parse_rarity
from grovi.database.models import BoxConfig, Rarity, SpinConfig
from grovi.database.repo.config_repo import get_active_box_config, get_active_spin_config

log = logging.getLogger(__name__)


class SpinOutcomeType(str, enum.Enum):
    COINS = "coins"
    MYSTERY_BOX = "mystery_box"
    EXTRA_SPIN = "extra_spin"
    NOTHING = "nothing"


@dataclass(frozen=True, slots=True)
class SpinOutcome:
    label: str
    type: SpinOutcomeType
    value: int
    weight: float


@dataclass(frozen=True, slots=True)
class SpinSettings:
    outcomes: tuple[SpinOutcome, ...]
    free_cooldown_hours: float
    premium_cooldown_hours: float
    version: int = 0  # 0 = built-in defaults


@dataclass(frozen=True, slots=True)
class RarityPool:
    rarity: Rarity
    weight: float
    card_ids: tuple[int, ...] = ()


@dataclass(frozen=True, slots=True)
class BoxSettings:
    pools: tuple[RarityPool, ...]
    version: int = 0


DEFAULT_SPIN_OUTCOMES: tuple[SpinOutcome, ...] = (
    SpinOutcome("+1 Coin", SpinOutcomeType.COINS, 1, 45),
    SpinOutcome("+5 Coins", SpinOutcomeType.COINS, 5, 25),
    SpinOutcome("+10 Coins", SpinOutcomeType.COINS, 10, 15),
    SpinOutcome("+25 Coins", SpinOutcomeType.COINS, 25, 10),
    SpinOutcome("Mystery Box", SpinOutcomeType.MYSTERY_BOX, 1, 5),
)

DEFAULT_SPIN_SETTINGS = SpinSettings(
    outcomes=DEFAULT_SPIN_OUTCOMES,
    free_cooldown_hours=24,
    premium_cooldown_hours=6,
)

DEFAULT_BOX_SETTINGS = BoxSettings(
    pools=(
        RarityPool(Rarity.COMMON, 0.60),
        RarityPool(Rarity.RARE, 0.25),
        RarityPool(Rarity.EPIC, 0.10),
        RarityPool(Rarity.LEGENDARY, 0.05),
    ),
)


def parse_spin_outcome(raw: dict[str, Any]) -> SpinOutcome:
    """Raises ValueError/KeyError on malformed rows."""
    otype = SpinOutcomeType(str(raw.get("type") or "coins"))
    value = int(raw.get("value", 1))
    label = str(raw.get("label") or (f"+{value} Coins" if otype is SpinOutcomeType.COINS else otype.value))
    return SpinOutcome(label=label, type=otype, value=value, weight=float(raw.get("weight", 1)))


def parse_rarity_pool(raw: dict[str, Any]) -> RarityPool:
    rarity = parse_rarity(raw["rarity"])
    if rarity is None:
        raise ValueError(f"unknown rarity {raw['rarity']!r}")
    ids = tuple(int(x) for x in (raw.get("card_ids") or raw.get("cardIds") or ()))
    return RarityPool(rarity=rarity, weight=float(raw.get("weight", 0)), card_ids=ids)


def spin_settings_from_row(cfg: SpinConfig | None) -> SpinSettings:
    if cfg is None:
        return DEFAULT_SPIN_SETTINGS

    try:
        outcomes = tuple(parse_spin_outcome(w) for w in (cfg.weights or []))
    except (KeyError, TypeError, ValueError):
        log.exception("Spin config v%s has malformed weights, using default table", cfg.version)
        outcomes = ()

    return SpinSettings(
        outcomes=outcomes or DEFAULT_SPIN_OUTCOMES,
        free_cooldown_hours=float(cfg.free_cooldown_hours if cfg.free_cooldown_hours is not None else 24),
        premium_cooldown_hours=float(cfg.premium_cooldown_hours if cfg.premium_cooldown_hours is not None else 6),
        version=int(cfg.version or 0),
    )


def box_settings_from_row(cfg: BoxConfig | None) -> BoxSettings:
    if cfg is None:
        return DEFAULT_BOX_SETTINGS

    try:
        pools = tuple(parse_rarity_pool(p) for p in (cfg.pools or []))
    except (KeyError, TypeError, ValueError):
        log.exception("Box config v%s has malformed pools, using default table", cfg.version)
        pools = ()

    if not pools:
        return BoxSettings(pools=DEFAULT_BOX_SETTINGS.pools, version=int(cfg.version or 0))
    return BoxSettings(pools=pools, version=int(cfg.version or 0))


class ConfigProvider:
    """
    Read-mostly cache of the active spin/box settings, injected into engines.

    Entries are reloaded when older than ttl_seconds (on the next read) or when
    refresh() is called by the scheduler. Staleness up to one ttl is accepted;
    admins publishing a config call invalidate() so their own process sees it at once.
    Reloads take no lock: each is a plain read followed by one assignment.
    """

    def __init__(self, ttl_seconds: float = 60, *, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._spin: SpinSettings | None = None
        self._box: BoxSettings | None = None
        self._loaded_at: float | None = None

    def _fresh(self) -> bool:
        if self._loaded_at is None or self._spin is None or self._box is None:
            return False
        if self.ttl_seconds <= 0:
            return False
        return (self._clock() - self._loaded_at) < self.ttl_seconds

    async def refresh(self, session: AsyncSession) -> None:
        await self._load(session)

    async def _load(self, session: AsyncSession) -> None:
        spin = spin_settings_from_row(await get_active_spin_config(session))
        box = box_settings_from_row(await get_active_box_config(session))

        if self._spin is None or spin.version != self._spin.version:
            log.info("Spin settings loaded (version=%s)", spin.version)
        if self._box is None or box.version != self._box.version:
            log.info("Box settings loaded (version=%s)", box.version)

        self._spin, self._box = spin, box
        self._loaded_at = self._clock()

    async def _ensure(self, session: AsyncSession) -> None:
        if not self._fresh():
            await self._load(session)

    async def spin_settings(self, session: AsyncSession) -> SpinSettings:
        await self._ensure(session)
        assert self._spin is not None
        return self._spin

    async def box_settings(self, session: AsyncSession) -> BoxSettings:
        await self._ensure(session)
        assert self._box is not None
        return self._box

    def invalidate(self) -> None:
        self._loaded_at = None
