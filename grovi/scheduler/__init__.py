# grovi/scheduler/__init__.py
from __future__ import annotations

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from grovi.config.settings import Settings
from grovi.database.session import Database
from grovi.scheduler.jobs import build_scheduler
from grovi.services.config_provider import ConfigProvider


def setup_scheduler(db: Database, config: ConfigProvider, settings: Settings) -> AsyncIOScheduler:
    scheduler = build_scheduler(db=db, config=config, settings=settings)
    scheduler.start()
    return scheduler
