# grovi/database/tx.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Awaitable, Callable, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from grovi.database.session import Database

log = logging.getLogger(__name__)

T = TypeVar("T")


@asynccontextmanager
async def transactional(session: AsyncSession):
    """
    Safe transactional context for SQLAlchemy 2.x autobegin.

    - If a transaction is already active, use SAVEPOINT (begin_nested)
    - Otherwise, start a new transaction
    """
    if session.in_transaction():
        async with session.begin_nested():
            yield
    else:
        async with session.begin():
            yield


async def run_atomic(
    db: Database,
    work: Callable[[AsyncSession], Awaitable[T]],
    *,
    attempts: int = 3,
) -> T:
    """
    Runs one unit of work in its own session + transaction.

    Users are version-checked on every write (optimistic lock). When another
    request committed first, the flush raises StaleDataError, the transaction
    is rolled back and the unit is replayed from a fresh snapshot.
    Any other exception propagates unchanged after rollback.
    """
    for attempt in range(1, attempts + 1):
        try:
            async with db.session() as session:
                async with session.begin():
                    return await work(session)
        except StaleDataError:
            if attempt >= attempts:
                log.error("Write conflict persisted after %s attempts", attempts)
                raise
            log.info("Write conflict, retrying (attempt %s/%s)", attempt + 1, attempts)

    raise RuntimeError("unreachable")
