# grovi/api/rewards.py
from __future__ import annotations

from fastapi import APIRouter, Depends

from grovi.api.deps import AppContext, Caller, get_ctx, get_player
from grovi.api.schemas import RedeemRequest
from grovi.database.tx import run_atomic
from grovi.services.redemption import RedemptionService

router = APIRouter()


@router.post("/redeem")
async def redeem(body: RedeemRequest, caller: Caller = Depends(get_player), ctx: AppContext = Depends(get_ctx)):
    res = await run_atomic(
        ctx.db,
        lambda s: RedemptionService.redeem(s, email=caller.email, reward_id=body.reward_id),
        attempts=ctx.settings.write_retries,
    )
    return {
        "success": True,
        "coins": res.coins,
        "boxes": res.boxes,
        "spinTickets": res.spin_tickets,
        "reward": {"id": res.reward_id, "title": res.reward_title, "type": res.reward_type.value},
    }
