"""Scheduler wiring for the periodic telemetry sampler."""
from __future__ import annotations

import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from .telemetry import TelemetrySampler

logger = logging.getLogger(__name__)

SAMPLER_JOB_ID = "telemetry-sampler"


class TelemetryScheduler:
    """Runs the sampler on a fixed interval for the lifetime of a session.

    The job is a coroutine so APScheduler runs it on the event loop rather
    than in its worker thread pool; session state is only touched there.
    """

    def __init__(self, sampler: TelemetrySampler, *, interval_seconds: float = 4.0) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.sampler = sampler
        self.interval_seconds = interval_seconds
        self._scheduler: Optional[AsyncIOScheduler] = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None

    async def _tick(self) -> None:
        self.sampler.tick()

    def start(self) -> None:
        """Register the interval job; must be called from a running event loop."""

        if self._scheduler is not None:
            return
        scheduler = AsyncIOScheduler()
        scheduler.add_job(
            self._tick,
            "interval",
            seconds=self.interval_seconds,
            id=SAMPLER_JOB_ID,
            max_instances=1,
            coalesce=True,
        )
        scheduler.start()
        self._scheduler = scheduler
        logger.info("Telemetry sampler scheduled every %.1fs", self.interval_seconds)

    def shutdown(self) -> None:
        if self._scheduler is None:
            return
        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Telemetry sampler stopped")


__all__ = ["SAMPLER_JOB_ID", "TelemetryScheduler"]
