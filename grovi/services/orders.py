# grovi/services/orders.py
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping

from sqlalchemy.ext.asyncio import AsyncSession

from grovi.catalog import get_card
from grovi.database.models import CardOrigin, TxSource
from grovi.database.repo.cards_repo import mint_card
from grovi.database.repo.ledger_repo import ref_exists
from grovi.database.repo.product_map_repo import active_mappings
from grovi.database.repo.users import get_or_create_user, normalize_email
from grovi.database.tx import transactional
from grovi.services import ledger
from grovi.services.errors import InvalidRequest

log = logging.getLogger(__name__)

COMPLETED = "completed"

# keeps floor(total) and product ids inside a signed 64-bit column
MAX_ORDER_TOTAL = Decimal(10) ** 12
MAX_PRODUCT_ID = 2**63 - 1


@dataclass(frozen=True, slots=True)
class OrderEvent:
    order_id: str
    billing_email: str
    total: Decimal
    status: str
    product_ids: tuple[int, ...] = ()

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "OrderEvent":
        """
        Accepts the storefront shape:
          {billingEmail, total, lineItems: [{productId}], orderId, status}
        snake_case keys are accepted too.
        """
        def pick(*keys: str) -> Any:
            for k in keys:
                if payload.get(k) not in (None, ""):
                    return payload[k]
            return None

        order_id = pick("orderId", "order_id", "id")
        email = pick("billingEmail", "billing_email", "email")
        if order_id is None or not email:
            raise InvalidRequest("orderId and billingEmail are required")

        try:
            total = Decimal(str(pick("total") or "0"))
        except InvalidOperation as e:
            raise InvalidRequest(f"Invalid order total: {payload.get('total')!r}") from e
        if not total.is_finite() or total < 0 or total > MAX_ORDER_TOTAL:
            raise InvalidRequest(f"Invalid order total: {payload.get('total')!r}")

        items = pick("lineItems", "line_items") or []
        if not isinstance(items, (list, tuple)):
            raise InvalidRequest("lineItems must be a list")

        product_ids: list[int] = []
        for item in items:
            raw = item.get("productId", item.get("product_id")) if isinstance(item, Mapping) else None
            try:
                pid = int(raw)
            except (TypeError, ValueError):
                continue
            if 0 < pid <= MAX_PRODUCT_ID:
                product_ids.append(pid)

        return cls(
            order_id=str(order_id),
            billing_email=normalize_email(email),
            total=total,
            status=str(pick("status") or "").strip().lower(),
            product_ids=tuple(product_ids),
        )


@dataclass(frozen=True, slots=True)
class OrderResult:
    processed: bool
    reason: str = ""
    coins: int = 0
    cards: list[str] = field(default_factory=list)
    total_coins: int | None = None


class OrderIngestService:
    @staticmethod
    async def ingest(session: AsyncSession, event: OrderEvent) -> OrderResult:
        """
        Credit a completed order exactly once: floor(total) coins plus one card
        per mapped product. Non-completed orders and replays are no-ops.
        """
        if event.status != COMPLETED:
            log.info("Order %s ignored (status=%s)", event.order_id, event.status or "-")
            return OrderResult(processed=False, reason="not_completed")

        async with transactional(session):
            if await ref_exists(session, source=TxSource.WEBHOOK, ref=event.order_id):
                log.info("Order %s already processed", event.order_id)
                return OrderResult(processed=False, reason="duplicate")

            user = await get_or_create_user(session, event.billing_email)
            coins = int(math.floor(event.total))

            mappings = await active_mappings(session, event.product_ids)
            minted: list[str] = []
            for pid in event.product_ids:
                m = mappings.get(pid)
                card = get_card(m.catalog_card_id) if m else None
                if card is None:
                    continue
                await mint_card(session, user_id=user.id, card=card, origin=CardOrigin.ORDER)
                minted.append(card.name)

            user.coins = (user.coins or 0) + coins
            await session.flush()

            # uq_ledger_source_ref backs up ref_exists against concurrent deliveries
            await ledger.record(
                session,
                user_id=user.id,
                coins=coins,
                ref=event.order_id,
                meta=ledger.WebhookMeta(order_id=event.order_id, total=str(event.total), cards_minted=minted),
            )

            log.info("Order %s credited user=%s coins=%s cards=%s", event.order_id, user.id, coins, len(minted))
            return OrderResult(processed=True, coins=coins, cards=minted, total_coins=user.coins)
