"""Monitoring pipeline - owns and wires the live health-monitoring components.

Scheduler -> ProbeRunner -> (MonitorStore, HistoryStore) -> StatsDebouncer
-> StatsAggregator -> Broadcaster -> observers. RetentionService runs on its
own daily schedule.
"""
import asyncio
import logging
from typing import Optional

import httpx
from sqlalchemy.ext.asyncio import async_sessionmaker

from ..config import Settings
from .broadcaster import Broadcaster
from .checker import CheckerService
from .debouncer import StatsDebouncer
from .history import HistoryStore
from .monitor_store import MonitorStore
from .prober import ProbeRunner
from .retention import RetentionService
from .scheduler import SchedulerService
from .stats import StatsAggregator

logger = logging.getLogger(__name__)


class MonitoringPipeline:
    """All pipeline components with a start/stop lifecycle."""

    def __init__(
        self,
        config: Settings,
        session_factory: async_sessionmaker,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config

        # One writer at a time across both stores
        write_lock = asyncio.Lock()
        self.history = HistoryStore(session_factory, write_lock)
        self.monitors = MonitorStore(session_factory, self.history, write_lock)

        self.checker = CheckerService(timeout=config.probe_timeout_seconds, transport=transport)
        self.broadcaster = Broadcaster(buffer_size=config.subscriber_buffer_size)
        self.aggregator = StatsAggregator(self.monitors, self.history, config.uptime_window_hours)
        self.debouncer = StatsDebouncer(self.aggregator, self.broadcaster, window_ms=config.debounce_ms)
        self.prober = ProbeRunner(
            self.checker,
            self.monitors,
            self.history,
            self.broadcaster,
            on_change=self.debouncer.trigger,
            window_hours=config.uptime_window_hours,
        )
        self.retention = RetentionService(self.history, retention_days=config.retention_days)
        self.scheduler = SchedulerService(
            self.monitors,
            self.prober,
            self.retention,
            interval_seconds=config.check_interval_seconds,
            probe_delay_ms=config.probe_delay_ms,
            include_paused=config.probe_paused_monitors,
        )

    async def start(self):
        """Seed the store if configured and start background jobs."""
        if self.config.seed_on_empty:
            await self.monitors.seed_if_empty()
        self.scheduler.start()
        logger.info("Monitoring pipeline started")

    async def stop(self):
        """Stop scheduling, flush the debouncer and disconnect observers."""
        self.scheduler.stop()
        await self.debouncer.close()
        await self.broadcaster.close()
        logger.info("Monitoring pipeline stopped")

    def notify_changed(self):
        """Signal that monitor state changed outside the probe path."""
        self.debouncer.trigger()
