# grovi/database/repo/users.py
from __future__ import annotations

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from grovi.database.models import User


def normalize_email(email: str) -> str:
    return str(email or "").strip().lower()


async def get_user_by_email(session: AsyncSession, email: str) -> Optional[User]:
    q = select(User).where(User.email == normalize_email(email))
    res = await session.execute(q)
    return res.scalar_one_or_none()


async def get_or_create_user(session: AsyncSession, email: str) -> User:
    """
    Users are created on first contact (usually their first completed order).
    The caller owns the transaction.
    """
    user = await get_user_by_email(session, email)
    if user is not None:
        return user

    user = User(email=normalize_email(email), coins=0, boxes=0, spin_tickets=0)
    session.add(user)
    await session.flush()  # ensures `user.id` exists before ledger rows reference it
    return user
