# grovi/services/ledger.py
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import ClassVar, Union

from sqlalchemy.ext.asyncio import AsyncSession

from grovi.database.models import LedgerEntry, TxSource


# --- typed meta, one variant per source ---

@dataclass(frozen=True, slots=True)
class SpinMeta:
    source: ClassVar[TxSource] = TxSource.SPIN
    mode: str
    outcome: str
    outcome_type: str
    ticket_used: bool
    box_granted: int = 0
    tickets_granted: int = 0
    seed: str = ""


@dataclass(frozen=True, slots=True)
class BoxOpenMeta:
    source: ClassVar[TxSource] = TxSource.BOX_OPEN
    rarity: str
    card_name: str
    catalog_id: int


@dataclass(frozen=True, slots=True)
class BurnMeta:
    source: ClassVar[TxSource] = TxSource.BURN
    rarity: str
    card_id: int
    catalog_id: int | None = None


@dataclass(frozen=True, slots=True)
class FuseMeta:
    source: ClassVar[TxSource] = TxSource.FUSE
    rarity: str
    into_rarity: str
    consumed_card_ids: list[int]
    minted_card_id: int
    card_name: str


@dataclass(frozen=True, slots=True)
class RedeemMeta:
    source: ClassVar[TxSource] = TxSource.REDEEM
    reward_id: int
    reward_title: str
    reward_type: str


@dataclass(frozen=True, slots=True)
class WebhookMeta:
    source: ClassVar[TxSource] = TxSource.WEBHOOK
    order_id: str
    total: str
    cards_minted: list[str] = field(default_factory=list)


LedgerMeta = Union[SpinMeta, BoxOpenMeta, BurnMeta, FuseMeta, RedeemMeta, WebhookMeta]

_META_BY_SOURCE: dict[TxSource, type] = {
    m.source: m for m in (SpinMeta, BoxOpenMeta, BurnMeta, FuseMeta, RedeemMeta, WebhookMeta)
}


def meta_of(entry: LedgerEntry) -> LedgerMeta:
    """Rebuild the typed meta variant stored on a ledger row."""
    cls = _META_BY_SOURCE[TxSource(entry.source)]
    return cls(**(entry.meta or {}))


async def record(
    session: AsyncSession,
    *,
    user_id: int,
    meta: LedgerMeta,
    coins: int = 0,
    boxes: int = 0,
    spin_tickets: int = 0,
    ref: str | None = None,
) -> LedgerEntry:
    """
    Append one ledger row in the caller's transaction, so it commits or rolls
    back together with the balance change it describes.
    """
    entry = LedgerEntry(
        user_id=user_id,
        source=meta.source,
        coins=int(coins),
        boxes=int(boxes),
        spin_tickets=int(spin_tickets),
        ref=ref,
        meta=asdict(meta),
    )
    session.add(entry)
    await session.flush()
    return entry
