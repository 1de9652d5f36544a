# grovi/main.py
from __future__ import annotations

import contextlib
import logging
import random
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from grovi.api import router as api_router
from grovi.api.deps import AppContext
from grovi.api.errors import setup_exception_handlers
from grovi.config import Settings
from grovi.database import Database

# IMPORTANT: register models
from grovi.database.models import *  # noqa: F401,F403

from grovi.scheduler import setup_scheduler
from grovi.services.admin import AdminService
from grovi.services.box import BoxService
from grovi.services.config_provider import ConfigProvider
from grovi.services.fusion import FusionService
from grovi.services.spin import SpinService


def setup_logging(is_dev: bool) -> None:
    """
    Clean production logging:
    - app logs: INFO (or DEBUG in dev)
    - SQLAlchemy / scheduler / server access logs: WARNING+
    """
    app_level = logging.DEBUG if is_dev else logging.INFO

    logging.basicConfig(
        level=app_level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    for name in (
        "sqlalchemy",
        "sqlalchemy.engine",
        "sqlalchemy.pool",
        "sqlalchemy.orm",
        "aiosqlite",
        "asyncpg",
        "apscheduler",
        "uvicorn.access",
    ):
        logging.getLogger(name).setLevel(logging.WARNING)


def build_context(settings: Settings, *, rng: random.Random | None = None) -> AppContext:
    db = Database(settings.database_url, busy_timeout_ms=settings.sqlite_busy_timeout_ms)
    config = ConfigProvider(ttl_seconds=settings.config_refresh_seconds)
    return AppContext(
        settings=settings,
        db=db,
        config=config,
        spin=SpinService(config, rng=rng),
        box=BoxService(config, rng=rng),
        fusion=FusionService(rng=rng),
        admin=AdminService(config),
    )


def create_app(settings: Settings | None = None, *, rng: random.Random | None = None) -> FastAPI:
    settings = settings or Settings.load()
    ctx = build_context(settings, rng=rng)
    log = logging.getLogger("grovi")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await ctx.db.init_models()
        log.info("DB initialized")

        async with ctx.db.session() as session:
            await ctx.config.refresh(session)

        scheduler = None
        if settings.config_refresh_seconds > 0:
            scheduler = setup_scheduler(ctx.db, ctx.config, settings)
            log.info("Scheduler started")

        try:
            yield
        finally:
            if scheduler is not None:
                try:
                    scheduler.shutdown(wait=False)
                except Exception:
                    log.exception("Failed to shutdown scheduler")

            with contextlib.suppress(Exception):
                await ctx.db.close()

    app = FastAPI(title="Grovi reward economy", version="1.0.0", lifespan=lifespan)
    app.state.ctx = ctx
    setup_exception_handlers(app)
    app.include_router(api_router, prefix="/api")

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


def main() -> None:
    settings = Settings.load()
    setup_logging(settings.is_dev)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
