"""Periodic background health checks."""

from __future__ import annotations

import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from dateutil.tz import tzutc

from .failover import FailoverEngine

logger = logging.getLogger(__name__)

JOB_ID = "channel-health-check"


class HealthMonitor:
    """Runs ``FailoverEngine.check_all`` every ``interval_minutes``. Zero disables it."""

    def __init__(self, engine: FailoverEngine, interval_minutes: int):
        self.engine = engine
        self.interval_minutes = interval_minutes
        self.scheduler: Optional[AsyncIOScheduler] = None

    @property
    def running(self) -> bool:
        return self.scheduler is not None and self.scheduler.running

    def start(self) -> None:
        if self.interval_minutes <= 0:
            logger.info("Periodic health checks disabled.")
            return
        if self.running:
            return
        self.scheduler = AsyncIOScheduler(timezone=tzutc())
        self.scheduler.add_job(
            self.engine.check_all,
            trigger="interval",
            minutes=self.interval_minutes,
            id=JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self.scheduler.start()
        logger.info("Health checks scheduled every %d minute(s).", self.interval_minutes)

    def stop(self) -> None:
        if self.running:
            self.scheduler.shutdown(wait=False)
        self.scheduler = None
