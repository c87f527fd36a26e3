"""
Scheduler Service.

Runs the monitoring sweep on a fixed interval using APScheduler. The first
run fires immediately when monitoring starts.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from linkwatch.core.config import settings
from linkwatch.services.collector import Collector, get_collector

logger = logging.getLogger(__name__)

MONITORING_JOB_ID = "link_monitoring"


class SchedulerService:
    """Owns the AsyncIOScheduler and the monitoring job."""

    def __init__(self, collector: Collector | None = None) -> None:
        self.scheduler = AsyncIOScheduler(
            job_defaults={
                "max_instances": 1,
                "coalesce": True,
                "misfire_grace_time": 30,
            },
        )
        self._collector = collector

    @property
    def collector(self) -> Collector:
        if self._collector is None:
            self._collector = get_collector()
        return self._collector

    def start_monitoring(self, interval_seconds: int | None = None) -> str:
        """
        Schedule the sweep every ``interval_seconds`` and start the scheduler.

        Re-adding replaces the existing job, so this also changes the interval.
        """
        interval = interval_seconds or settings.monitoring.interval_seconds
        job = self.scheduler.add_job(
            self._run_monitoring,
            trigger=IntervalTrigger(seconds=interval),
            id=MONITORING_JOB_ID,
            name="Link monitoring",
            next_run_time=datetime.now(timezone.utc),
            replace_existing=True,
        )
        if not self.scheduler.running:
            self.scheduler.start()
        logger.info("Link monitoring scheduled every %ds", interval)
        return job.id

    def stop_monitoring(self) -> bool:
        """Remove the monitoring job; returns False if it was not scheduled."""
        if self.scheduler.get_job(MONITORING_JOB_ID) is None:
            return False
        self.scheduler.remove_job(MONITORING_JOB_ID)
        logger.info("Link monitoring stopped")
        return True

    async def _run_monitoring(self) -> None:
        try:
            result = await self.collector.collect_all()
            logger.debug("Monitoring tick: %s", result)
        except Exception as e:
            logger.error("Monitoring sweep failed: %s", e)

    def get_jobs(self) -> list[dict[str, Any]]:
        return [
            {
                "id": job.id,
                "name": job.name,
                "next_run": str(job.next_run_time),
                "trigger": str(job.trigger),
            }
            for job in self.scheduler.get_jobs()
        ]

    def is_running(self) -> bool:
        return self.scheduler.running

    def stop(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Scheduler stopped")


# Singleton instance
_scheduler_service: SchedulerService | None = None


def get_scheduler_service() -> SchedulerService:
    global _scheduler_service
    if _scheduler_service is None:
        _scheduler_service = SchedulerService()
    return _scheduler_service
