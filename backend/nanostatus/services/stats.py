"""Stats aggregation - uptime derivation and dashboard snapshots."""
import logging
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from ..models import CheckHistory, Monitor
from ..schemas.stats import StatsSnapshot
from ..utils.time_utils import utcnow
from .history import HistoryStore
from .monitor_store import MonitorStore

logger = logging.getLogger(__name__)


async def calculate_uptime(
    history: HistoryStore,
    monitor_id: int,
    current_status: str,
    now: Optional[datetime] = None,
    window_hours: int = 24,
) -> float:
    """Uptime percentage of a monitor over its trailing window of checks.

    With no checks in the window, uptime follows the current status:
    100.0 when up, 0.0 otherwise.
    """
    since = (now or utcnow()) - timedelta(hours=window_hours)
    total, up_count = await history.window_counts(monitor_id, since)
    if total == 0:
        return 100.0 if current_status == "up" else 0.0
    return up_count / total * 100


class StatsAggregator:
    """Computes StatsSnapshot values from monitors and their history."""

    def __init__(self, monitors: MonitorStore, history: HistoryStore, window_hours: int = 24):
        self.monitors = monitors
        self.history = history
        self.window_hours = window_hours

    async def compute(self, now: Optional[datetime] = None) -> StatsSnapshot:
        """Snapshot of overall health. Paused monitors are ignored entirely."""
        now = now or utcnow()
        monitors = [m for m in await self.monitors.list_all() if not m.paused]

        services_up = sum(1 for m in monitors if m.status == "up")
        # Anything not up, including monitors never checked, counts as down
        services_down = len(monitors) - services_up

        overall_uptime = 0.0
        if monitors:
            uptimes = [await self._monitor_uptime(m, now) for m in monitors]
            overall_uptime = sum(uptimes) / len(uptimes)

        return StatsSnapshot(
            overall_uptime=overall_uptime,
            services_up=services_up,
            services_down=services_down,
            avg_response_time=await self._avg_response_time(monitors, now),
        )

    async def _monitor_uptime(self, monitor: Monitor, now: datetime) -> float:
        try:
            return await calculate_uptime(
                self.history, monitor.id, monitor.status, now, self.window_hours
            )
        except SQLAlchemyError as e:
            logger.error(f"Error reading uptime for monitor {monitor.id}, using stored value: {e}")
            return monitor.uptime or 0.0

    async def _avg_response_time(self, monitors: List[Monitor], now: datetime) -> int:
        """Mean latency of recent checks, falling back to current monitor latencies."""
        since = now - timedelta(hours=self.window_hours)
        try:
            average = await self.history.average(
                "response_time", since, CheckHistory.response_time > 0
            )
        except SQLAlchemyError as e:
            logger.error(f"Error calculating average response time from history: {e}")
            average = None

        if average is not None:
            logger.debug(f"Average response time from history: {average:.1f}ms")
            return int(average)

        latencies = [m.response_time for m in monitors if m.response_time and m.response_time > 0]
        if latencies:
            logger.debug(f"Average response time from {len(latencies)} monitors (no recent history)")
            return int(sum(latencies) / len(latencies))
        return 0
