# grovi/database/session.py
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from grovi.database.base import Base


def _apply_sqlite_pragmas(dbapi_connection, busy_timeout_ms: int) -> None:
    # BEGIN is emitted by the "begin" listener below, not by the driver
    dbapi_connection.isolation_level = None

    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON;")
    cursor.execute("PRAGMA journal_mode=WAL;")
    cursor.execute("PRAGMA synchronous=NORMAL;")
    cursor.execute(f"PRAGMA busy_timeout={int(busy_timeout_ms)};")
    cursor.close()


class Database:
    def __init__(self, database_url: str, *, busy_timeout_ms: int = 30000) -> None:
        self.database_url = database_url
        is_sqlite = database_url.startswith("sqlite")

        self.engine: AsyncEngine = create_async_engine(
            database_url,
            echo=False,
            pool_pre_ping=True,
            connect_args={"timeout": busy_timeout_ms / 1000} if is_sqlite else {},
        )

        if is_sqlite:
            @event.listens_for(self.engine.sync_engine, "connect")
            def _on_connect(dbapi_connection, _connection_record) -> None:  # type: ignore[no-redef]
                _apply_sqlite_pragmas(dbapi_connection, busy_timeout_ms)

            # Take the write lock up front so concurrent balance updates queue
            # on busy_timeout instead of failing on a read->write lock upgrade.
            @event.listens_for(self.engine.sync_engine, "begin")
            def _on_begin(conn) -> None:  # type: ignore[no-redef]
                conn.exec_driver_sql("BEGIN IMMEDIATE")

        self.SessionLocal = async_sessionmaker(
            bind=self.engine,
            expire_on_commit=False,
            autoflush=False,
            class_=AsyncSession,
        )

    async def init_models(self) -> None:
        async with self.engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        await self.engine.dispose()

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        async with self.SessionLocal() as s:
            yield s
