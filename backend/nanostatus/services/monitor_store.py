"""Monitor store - monitor definitions and their live state."""
import asyncio
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import async_sessionmaker

from ..models import Monitor
from ..utils.db_utils import retry_on_lock
from ..utils.time_utils import format_last_check
from .history import HistoryStore

logger = logging.getLogger(__name__)

# Fields that may be changed through update(); live fields are excluded
EDITABLE_FIELDS = {"name", "url", "icon", "is_third_party", "paused", "check_interval"}

# Example monitors created when the store is empty
DEFAULT_MONITORS = [
    {"name": "Example.com", "url": "https://example.com", "check_interval": 60},
    {"name": "Google", "url": "https://google.com", "check_interval": 60, "is_third_party": True},
]


class MonitorStore:
    """CRUD for monitors plus the single write path for live fields."""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        history: HistoryStore,
        write_lock: Optional[asyncio.Lock] = None,
    ):
        self._session_factory = session_factory
        self.history = history
        self._write_lock = write_lock or asyncio.Lock()

    async def list_all(self) -> List[Monitor]:
        async with self._session_factory() as session:
            result = await session.execute(select(Monitor).order_by(Monitor.id))
            return list(result.scalars().all())

    async def list_active(self, include_paused: bool = True) -> List[Monitor]:
        """Monitors a sweep should probe."""
        stmt = select(Monitor).order_by(Monitor.id)
        if not include_paused:
            stmt = stmt.where(Monitor.paused.is_(False))
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def get(self, monitor_id: int) -> Optional[Monitor]:
        async with self._session_factory() as session:
            return await session.get(Monitor, monitor_id)

    async def count(self) -> int:
        async with self._session_factory() as session:
            result = await session.execute(select(func.count(Monitor.id)))
            return result.scalar() or 0

    async def create(
        self,
        name: str,
        url: str,
        icon: Optional[str] = None,
        is_third_party: bool = False,
        paused: bool = False,
        check_interval: int = 60,
    ) -> Monitor:
        """Create a monitor in the `unknown` state."""
        async def do_create():
            async with self._session_factory() as session:
                monitor = Monitor(
                    name=name,
                    url=url,
                    icon=icon,
                    is_third_party=is_third_party,
                    paused=paused,
                    check_interval=check_interval,
                    status="unknown",
                    response_time=0,
                    last_check="never",
                    uptime=0.0,
                )
                session.add(monitor)
                await session.commit()
                await session.refresh(monitor)
                return monitor

        async with self._write_lock:
            monitor = await retry_on_lock(do_create)
        logger.info(f"Created monitor {monitor.id} ({monitor.name})")
        return monitor

    async def update(self, monitor_id: int, **fields) -> Optional[Monitor]:
        """Change definition fields. Returns None if the monitor does not exist."""
        unknown = set(fields) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields not editable: {', '.join(sorted(unknown))}")

        async def do_update():
            async with self._session_factory() as session:
                monitor = await session.get(Monitor, monitor_id)
                if monitor is None:
                    return None
                for key, value in fields.items():
                    setattr(monitor, key, value)
                await session.commit()
                await session.refresh(monitor)
                return monitor

        async with self._write_lock:
            return await retry_on_lock(do_update)

    async def apply_result(
        self,
        monitor_id: int,
        status: str,
        response_time: int,
        uptime: float,
        checked_at: datetime,
    ) -> Optional[Monitor]:
        """Record a probe outcome on the monitor's live fields.

        Returns None if the monitor was deleted while the probe was in flight.
        """
        async def do_apply():
            async with self._session_factory() as session:
                monitor = await session.get(Monitor, monitor_id)
                if monitor is None:
                    return None
                monitor.last_check = format_last_check(monitor.updated_at, checked_at)
                monitor.status = status
                monitor.response_time = response_time
                monitor.uptime = uptime
                monitor.last_checked_at = checked_at
                monitor.updated_at = checked_at
                await session.commit()
                await session.refresh(monitor)
                return monitor

        async with self._write_lock:
            return await retry_on_lock(do_apply)

    async def delete(self, monitor_id: int) -> bool:
        """Delete a monitor together with its check history."""
        if await self.get(monitor_id) is None:
            return False

        removed = await self.history.delete_for_monitor(monitor_id)

        # Records appended after the history purge go with the row (ON DELETE CASCADE)
        async def do_delete():
            async with self._session_factory() as session:
                result = await session.execute(delete(Monitor).where(Monitor.id == monitor_id))
                await session.commit()
                return (result.rowcount or 0) > 0

        async with self._write_lock:
            deleted = await retry_on_lock(do_delete)
        if deleted:
            logger.info(f"Deleted monitor {monitor_id} and {removed} check records")
        return deleted

    async def seed_if_empty(self) -> int:
        """Create the example monitors when no monitor exists yet."""
        if await self.count() > 0:
            return 0
        for definition in DEFAULT_MONITORS:
            await self.create(**definition)
        logger.info(f"Seeded {len(DEFAULT_MONITORS)} example monitors")
        return len(DEFAULT_MONITORS)
