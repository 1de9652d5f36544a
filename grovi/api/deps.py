# grovi/api/deps.py
from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException, Request

from grovi.config.settings import Settings
from grovi.database.repo.users import get_user_by_email, normalize_email
from grovi.database.session import Database
from grovi.services.admin import AdminService
from grovi.services.box import BoxService
from grovi.services.config_provider import ConfigProvider
from grovi.services.fusion import FusionService
from grovi.services.spin import SpinService


@dataclass(slots=True)
class AppContext:
    """Everything a request handler needs; built once in create_app()."""
    settings: Settings
    db: Database
    config: ConfigProvider
    spin: SpinService
    box: BoxService
    fusion: FusionService
    admin: AdminService


@dataclass(frozen=True, slots=True)
class Caller:
    email: str
    role: str
    is_admin: bool


def get_ctx(request: Request) -> AppContext:
    return request.app.state.ctx


async def get_caller(
    x_user_email: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
    ctx: AppContext = Depends(get_ctx),
) -> Caller:
    """
    Identity is resolved upstream (auth gateway) and forwarded as headers.
    Root admins come from env and always take precedence.
    """
    email = normalize_email(x_user_email or "")
    if not email:
        raise HTTPException(status_code=401, detail="Missing caller identity")

    role = (x_user_role or "user").strip().lower() or "user"
    if email in ctx.settings.root_admin_emails:
        return Caller(email=email, role="root", is_admin=True)
    return Caller(email=email, role=role, is_admin=role == "admin")


async def get_player(caller: Caller = Depends(get_caller), ctx: AppContext = Depends(get_ctx)) -> Caller:
    """Caller allowed to play: banned users are rejected here, not in the engines."""
    async with ctx.db.session() as session:
        user = await get_user_by_email(session, caller.email)
    if user is not None and user.banned:
        raise HTTPException(status_code=403, detail="Account is banned")
    return caller


async def require_admin(caller: Caller = Depends(get_caller)) -> Caller:
    if not caller.is_admin:
        raise HTTPException(status_code=403, detail="Not an admin")
    return caller
