# grovi/api/webhooks.py
from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends
from sqlalchemy.exc import IntegrityError

from grovi.api.deps import AppContext, get_ctx
from grovi.database.tx import run_atomic
from grovi.services.orders import OrderEvent, OrderIngestService

log = logging.getLogger(__name__)

router = APIRouter()


@router.post("/orders")
async def order_webhook(payload: dict[str, Any] = Body(...), ctx: AppContext = Depends(get_ctx)):
    """
    Order events arrive already verified by the storefront integration.
    Replays of the same orderId are acknowledged without crediting again.
    """
    event = OrderEvent.from_payload(payload)

    try:
        res = await run_atomic(
            ctx.db,
            lambda s: OrderIngestService.ingest(s, event),
            attempts=ctx.settings.write_retries,
        )
    except IntegrityError:
        # a concurrent delivery of the same order won the unique ref
        log.info("Order %s already processed (concurrent delivery)", event.order_id)
        return {"success": True, "processed": False, "reason": "duplicate", "coins": 0, "cards": []}

    return {
        "success": True,
        "processed": res.processed,
        "reason": res.reason or None,
        "coins": res.coins,
        "cards": res.cards,
        "totalCoins": res.total_coins,
    }
