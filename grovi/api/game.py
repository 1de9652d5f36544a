# grovi/api/game.py
from __future__ import annotations

from fastapi import APIRouter, Depends

from grovi.api.deps import AppContext, Caller, get_ctx, get_player
from grovi.api.schemas import BurnRequest, FuseRequest, SpinRequest
from grovi.database.tx import run_atomic
from grovi.services.burn import BurnService

router = APIRouter()


@router.post("/spin")
async def spin(body: SpinRequest, caller: Caller = Depends(get_player), ctx: AppContext = Depends(get_ctx)):
    """Daily spin (free) or premium spin; premium consumes a ticket when one is held."""
    res = await run_atomic(
        ctx.db,
        lambda s: ctx.spin.spin(s, email=caller.email, mode=body.mode),
        attempts=ctx.settings.write_retries,
    )
    return {
        "success": True,
        "outcome": res.outcome,
        "prize": res.prize,
        "mysteryBoxes": res.mystery_boxes,
        "ticketUsed": res.ticket_used,
        "totalCoins": res.total_coins,
        "boxes": res.boxes,
        "spinTickets": res.spin_tickets,
    }


@router.post("/box/open")
async def open_box(caller: Caller = Depends(get_player), ctx: AppContext = Depends(get_ctx)):
    res = await run_atomic(
        ctx.db,
        lambda s: ctx.box.open_box(s, email=caller.email),
        attempts=ctx.settings.write_retries,
    )
    return {
        "success": True,
        "card": {
            "id": res.owned_card_id,
            "cardId": res.card.id,
            "name": res.card.name,
            "rarity": res.card.rarity.value,
        },
        "boxesLeft": res.boxes_left,
        "rewardCoins": res.reward_coins,
        "totalCoins": res.total_coins,
    }


@router.post("/box/burn")
async def burn_card(body: BurnRequest, caller: Caller = Depends(get_player), ctx: AppContext = Depends(get_ctx)):
    res = await run_atomic(
        ctx.db,
        lambda s: BurnService.burn(s, email=caller.email, card_id=body.card_id),
        attempts=ctx.settings.write_retries,
    )
    return {"success": True, "added": res.added, "totalCoins": res.total_coins}


@router.post("/box/fuse")
async def fuse_cards(body: FuseRequest, caller: Caller = Depends(get_player), ctx: AppContext = Depends(get_ctx)):
    res = await run_atomic(
        ctx.db,
        lambda s: ctx.fusion.fuse(s, email=caller.email, rarity=body.rarity),
        attempts=ctx.settings.write_retries,
    )
    return {
        "success": True,
        "fusedInto": {
            "id": res.id,
            "cardId": res.catalog_id,
            "name": res.name,
            "rarity": res.rarity.value,
        },
    }
