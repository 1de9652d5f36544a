from fastapi import APIRouter

from . import admin, game, rewards, webhooks

router = APIRouter()
router.include_router(game.router, tags=["Game"])
router.include_router(rewards.router, prefix="/rewards", tags=["Rewards"])
router.include_router(webhooks.router, prefix="/webhooks", tags=["Webhooks"])
router.include_router(admin.router, prefix="/admin", tags=["Admin"])

__all__ = ["router"]
