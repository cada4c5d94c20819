"""Probe runner - executes a check and applies its outcome to the pipeline."""
import logging
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError

from ..models import Monitor
from ..schemas.monitor import MonitorResponse
from ..utils.time_utils import utcnow
from .broadcaster import Broadcaster
from .checker import CheckerService, CheckResult
from .history import CheckRecord, HistoryStore
from .monitor_store import MonitorStore
from .stats import calculate_uptime

logger = logging.getLogger(__name__)

MONITOR_UPDATE = "monitor_update"


class ProbeRunner:
    """Runs one probe and records it.

    Every probe appends exactly one check record, refreshes the monitor's live
    fields (status, latency, last check, 24h uptime), publishes a
    monitor_update and signals that stats may have changed.
    """

    def __init__(
        self,
        checker: CheckerService,
        monitors: MonitorStore,
        history: HistoryStore,
        broadcaster: Broadcaster,
        on_change: Optional[Callable[[], None]] = None,
        window_hours: int = 24,
    ):
        self.checker = checker
        self.monitors = monitors
        self.history = history
        self.broadcaster = broadcaster
        self.on_change = on_change
        self.window_hours = window_hours

    async def run(self, monitor: Monitor) -> Optional[CheckResult]:
        """Probe a monitor. Returns None if the result could not be recorded."""
        result = await self.checker.check(monitor.url)
        checked_at = utcnow()

        try:
            await self.history.append(CheckRecord(
                monitor_id=monitor.id,
                status=result.status,
                response_time=result.response_time_ms,
                created_at=checked_at,
            ))
            uptime = await calculate_uptime(
                self.history, monitor.id, result.status, checked_at, self.window_hours
            )
            updated = await self.monitors.apply_result(
                monitor.id, result.status, result.response_time_ms, uptime, checked_at
            )
        except SQLAlchemyError as e:
            logger.error(f"Error recording check for monitor {monitor.id}: {e}")
            return None

        if updated is None:
            logger.debug(f"Monitor {monitor.id} deleted during probe, discarding result")
            return None

        logger.debug(f"Monitor {updated.name}: {result.status} ({result.response_time_ms}ms)")

        await self.broadcaster.publish_update(
            MONITOR_UPDATE,
            MonitorResponse.model_validate(updated).model_dump(mode="json", by_alias=True),
        )
        if self.on_change is not None:
            self.on_change()
        return result

    async def run_by_id(self, monitor_id: int) -> Optional[CheckResult]:
        """Probe a monitor by id, e.g. right after it was created."""
        try:
            monitor = await self.monitors.get(monitor_id)
        except SQLAlchemyError as e:
            logger.error(f"Error loading monitor {monitor_id}: {e}")
            return None
        if monitor is None:
            logger.debug(f"Monitor {monitor_id} no longer exists, skipping probe")
            return None
        return await self.run(monitor)
