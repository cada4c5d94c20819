"""Scheduler service - drives periodic sweeps, on-demand probes and retention.

Sweep policy:
- One global tick (default 60s), plus an immediate sweep at startup
- Monitors are probed sequentially with a short delay between probes, which
  keeps outbound request concentration low. A sweep therefore takes roughly
  N * (probe time + delay); with many slow monitors a sweep can outlast the
  tick, in which case the next tick is skipped (max_instances=1, coalesce)
- Per-monitor check_interval values are advisory only; every monitor is
  probed once per global tick
"""
import asyncio
import logging
from datetime import datetime
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.exc import SQLAlchemyError

from .monitor_store import MonitorStore
from .prober import ProbeRunner
from .retention import RetentionService

logger = logging.getLogger(__name__)


class SchedulerService:
    """Service for scheduling sweeps, immediate probes and daily retention."""

    def __init__(
        self,
        monitors: MonitorStore,
        prober: ProbeRunner,
        retention: RetentionService,
        interval_seconds: int = 60,
        probe_delay_ms: int = 500,
        include_paused: bool = True,
    ):
        self.monitors = monitors
        self.prober = prober
        self.retention = retention
        self.interval_seconds = interval_seconds
        self.probe_delay = probe_delay_ms / 1000
        self.include_paused = include_paused
        # Created up front so probes submitted before start() are queued
        self.scheduler = AsyncIOScheduler()
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def start(self):
        """Start the scheduler. Must be called from within the event loop."""
        if self._running:
            return

        # Sweep all monitors now, then on every tick
        self.scheduler.add_job(
            self.run_sweep,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id="sweep",
            replace_existing=True,
            max_instances=1,
            misfire_grace_time=self.interval_seconds,
            coalesce=True,
            next_run_time=datetime.now().astimezone(),
        )

        # Purge old history at local midnight
        self.scheduler.add_job(
            self.retention.sweep,
            trigger=CronTrigger(hour=0, minute=0),
            id="retention",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=3600,
        )

        self.scheduler.start()
        self._running = True
        logger.info(
            f"Scheduler started (interval={self.interval_seconds}s, "
            f"probe_delay={int(self.probe_delay * 1000)}ms)"
        )

    def stop(self):
        """Stop the scheduler."""
        if self._running:
            self.scheduler.shutdown(wait=False)
            self._running = False
            logger.info("Scheduler stopped")

    def submit_probe(self, monitor_id: int):
        """Queue an immediate out-of-cycle probe without waiting for it."""
        self.scheduler.add_job(
            self.prober.run_by_id,
            args=[monitor_id],
            misfire_grace_time=None,
            next_run_time=datetime.now().astimezone(),
        )
        logger.debug(f"Queued immediate probe for monitor {monitor_id}")

    async def run_sweep(self) -> int:
        """Probe every monitor once. Returns the number of probes recorded."""
        try:
            monitors = await self.monitors.list_active(include_paused=self.include_paused)
        except SQLAlchemyError as e:
            logger.error(f"Error loading monitors for sweep: {e}")
            return 0

        logger.debug(f"Sweeping {len(monitors)} monitors")
        recorded = 0
        for index, monitor in enumerate(monitors):
            try:
                if await self.prober.run(monitor) is not None:
                    recorded += 1
            except Exception as e:
                logger.error(f"Error checking monitor {monitor.id}: {e}")

            # Spread probes out instead of bursting them at the targets
            if self.probe_delay and index < len(monitors) - 1:
                await asyncio.sleep(self.probe_delay)

        logger.debug(f"Sweep complete: {recorded}/{len(monitors)} checks recorded")
        return recorded

