# grovi/scheduler/jobs.py
from __future__ import annotations

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from grovi.config.settings import Settings
from grovi.database.session import Database
from grovi.services.config_provider import ConfigProvider

log = logging.getLogger(__name__)


async def refresh_game_config(db: Database, config: ConfigProvider) -> None:
    """Reload the active spin/box settings into the process-wide cache."""
    try:
        async with db.session() as session:
            await config.refresh(session)
    except Exception:
        # keep serving the previous snapshot; next tick retries
        log.exception("Config refresh failed")


def build_scheduler(db: Database, config: ConfigProvider, settings: Settings) -> AsyncIOScheduler:
    """
    Creates and returns an AsyncIOScheduler with our jobs registered.
    """
    scheduler = AsyncIOScheduler(timezone="UTC")

    if settings.config_refresh_seconds > 0:
        scheduler.add_job(
            refresh_game_config,
            trigger=IntervalTrigger(seconds=settings.config_refresh_seconds, timezone="UTC"),
            kwargs={"db": db, "config": config},
            id="refresh_game_config",
            replace_existing=True,
            coalesce=True,
            max_instances=1,
            misfire_grace_time=30,
        )
    else:
        log.info("Config refresh job disabled (CONFIG_REFRESH_SECONDS=0)")

    return scheduler
