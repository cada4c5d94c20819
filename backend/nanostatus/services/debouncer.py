"""Stats debouncer - coalesces change signals into one stats publication.

State machine::

    IDLE --trigger--> PENDING(deadline) --trigger--> PENDING(new deadline)
    PENDING --deadline--> IDLE  (recompute stats, publish if changed)
"""
import asyncio
import enum
import logging
from typing import Optional

from ..schemas.stats import StatsSnapshot
from .broadcaster import Broadcaster
from .stats import StatsAggregator

logger = logging.getLogger(__name__)

STATS_UPDATE = "stats_update"


class DebounceState(str, enum.Enum):
    IDLE = "idle"
    PENDING = "pending"


class StatsDebouncer:
    """Publishes a stats_update once signals have been quiet for a full window."""

    def __init__(self, aggregator: StatsAggregator, broadcaster: Broadcaster, window_ms: int = 500):
        self.aggregator = aggregator
        self.broadcaster = broadcaster
        self.window = window_ms / 1000
        self.state = DebounceState.IDLE
        self.deadline: Optional[float] = None
        self.last_published: Optional[StatsSnapshot] = None
        self._timer: Optional[asyncio.TimerHandle] = None
        self._tasks: set[asyncio.Task] = set()
        # Serializes the fire path so publications never interleave
        self._lock = asyncio.Lock()

    def trigger(self):
        """Start or restart the quiescence window. Must run on the event loop."""
        loop = asyncio.get_running_loop()
        if self._timer is not None:
            self._timer.cancel()
        self.deadline = loop.time() + self.window
        self.state = DebounceState.PENDING
        self._timer = loop.call_at(self.deadline, self._on_deadline)

    def _on_deadline(self):
        self._timer = None
        self.deadline = None
        self.state = DebounceState.IDLE
        task = asyncio.get_running_loop().create_task(self.flush())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def flush(self) -> bool:
        """Recompute stats and publish them if they differ from the last publication."""
        async with self._lock:
            try:
                snapshot = await self.aggregator.compute()
            except Exception as e:
                logger.error(f"Error computing stats, skipping publication: {e}")
                return False

            previous = self.last_published
            if previous is not None and previous.model_dump() == snapshot.model_dump():
                logger.debug("Stats unchanged, skipping broadcast")
                return False

            previous = previous or StatsSnapshot()
            logger.info(
                "Stats changed - broadcasting update "
                f"(uptime: {previous.overall_uptime:.2f}% -> {snapshot.overall_uptime:.2f}%, "
                f"up: {previous.services_up} -> {snapshot.services_up}, "
                f"down: {previous.services_down} -> {snapshot.services_down}, "
                f"avg: {previous.avg_response_time}ms -> {snapshot.avg_response_time}ms)"
            )
            self.last_published = snapshot
            await self.broadcaster.publish_update(STATS_UPDATE, snapshot.model_dump(by_alias=True))
            return True

    async def close(self):
        """Cancel any pending window and wait for an in-flight publication."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self.deadline = None
        self.state = DebounceState.IDLE
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
