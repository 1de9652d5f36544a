# grovi/api/admin.py
from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, Query

from grovi.api.deps import AppContext, Caller, get_ctx, require_admin
from grovi.api.schemas import BoxConfigRequest, SpinConfigRequest
from grovi.database.tx import run_atomic

router = APIRouter()


@router.put("/spin-config")
async def publish_spin_config(
    body: SpinConfigRequest,
    admin: Caller = Depends(require_admin),
    ctx: AppContext = Depends(get_ctx),
):
    weights = [w.model_dump() for w in body.weights]
    cfg = await run_atomic(
        ctx.db,
        lambda s: ctx.admin.publish_spin_config(
            s,
            actor_email=admin.email,
            weights=weights,
            free_cooldown_hours=body.free_cooldown_hours,
            premium_cooldown_hours=body.premium_cooldown_hours,
            name=body.name,
        ),
    )
    ctx.config.invalidate()
    return {
        "success": True,
        "config": {
            "id": cfg.id,
            "version": cfg.version,
            "weights": cfg.weights,
            "freeCooldownHours": cfg.free_cooldown_hours,
            "premiumCooldownHours": cfg.premium_cooldown_hours,
        },
    }


@router.put("/box-config")
async def publish_box_config(
    body: BoxConfigRequest,
    admin: Caller = Depends(require_admin),
    ctx: AppContext = Depends(get_ctx),
):
    pools = [p.model_dump() for p in body.pools]
    cfg = await run_atomic(
        ctx.db,
        lambda s: ctx.admin.publish_box_config(s, actor_email=admin.email, pools=pools, name=body.name),
    )
    ctx.config.invalidate()
    return {"success": True, "config": {"id": cfg.id, "version": cfg.version, "pools": cfg.pools}}


@router.get("/users/{email}/ledger")
async def user_ledger(
    email: str,
    limit: int = Query(default=100, ge=1, le=1000),
    admin: Caller = Depends(require_admin),
    ctx: AppContext = Depends(get_ctx),
):
    async with ctx.db.session() as session:
        data = await ctx.admin.user_ledger(session, email=email, limit=limit)
    return {"success": True, **asdict(data)}
