"""History store - append-only ledger of check results.

All writes go through one lock so a read issued after a write has returned
always observes it.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import case, delete, func, select
from sqlalchemy.ext.asyncio import async_sessionmaker

from ..models import CheckHistory
from ..utils.db_utils import retry_on_lock
from ..utils.time_utils import utcnow

logger = logging.getLogger(__name__)

# Columns that may be passed to HistoryStore.average
AVERAGEABLE_FIELDS = {"response_time"}


@dataclass(frozen=True)
class CheckRecord:
    """Immutable outcome of a single probe."""
    monitor_id: int
    status: str
    response_time: int = 0
    created_at: datetime = field(default_factory=utcnow)


class HistoryStore:
    """Windowed queries and age-based deletion over check history."""

    def __init__(self, session_factory: async_sessionmaker, write_lock: Optional[asyncio.Lock] = None):
        self._session_factory = session_factory
        self._write_lock = write_lock or asyncio.Lock()

    async def append(self, record: CheckRecord) -> int:
        """Persist a check record and return its row id."""
        async def do_insert():
            async with self._session_factory() as session:
                row = CheckHistory(
                    monitor_id=record.monitor_id,
                    status=record.status,
                    response_time=record.response_time,
                    created_at=record.created_at,
                )
                session.add(row)
                await session.commit()
                return row.id

        async with self._write_lock:
            return await retry_on_lock(do_insert)

    async def count(self, monitor_id: int, since: datetime, status: Optional[str] = None) -> int:
        """Count a monitor's records newer than `since`, optionally by status."""
        stmt = select(func.count(CheckHistory.id)).where(
            CheckHistory.monitor_id == monitor_id,
            CheckHistory.created_at > since,
        )
        if status is not None:
            stmt = stmt.where(CheckHistory.status == status)

        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return result.scalar() or 0

    async def window_counts(self, monitor_id: int, since: datetime) -> Tuple[int, int]:
        """(total, up) record counts for a monitor newer than `since`, read together."""
        stmt = select(
            func.count(CheckHistory.id),
            func.sum(case((CheckHistory.status == "up", 1), else_=0)),
        ).where(
            CheckHistory.monitor_id == monitor_id,
            CheckHistory.created_at > since,
        )

        async with self._session_factory() as session:
            total, up_count = (await session.execute(stmt)).one()
        return total or 0, up_count or 0

    async def average(self, field_name: str, since: datetime, *conditions) -> Optional[float]:
        """Average of a numeric column over all records newer than `since`.

        Extra SQLAlchemy conditions narrow the set further. Returns None when
        no record matches.
        """
        if field_name not in AVERAGEABLE_FIELDS:
            raise ValueError(f"Cannot average field: {field_name}")

        column = getattr(CheckHistory, field_name)
        stmt = select(func.avg(column)).where(CheckHistory.created_at > since, *conditions)

        async with self._session_factory() as session:
            result = await session.execute(stmt)
            value = result.scalar()
        return float(value) if value is not None else None

    async def most_recent(self, monitor_id: int, limit: int = 50) -> List[CheckHistory]:
        """Latest records for a monitor, newest first."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(CheckHistory)
                .where(CheckHistory.monitor_id == monitor_id)
                .order_by(CheckHistory.created_at.desc(), CheckHistory.id.desc())
                .limit(limit)
            )
            return list(result.scalars().all())

    async def delete_older_than(self, cutoff: datetime) -> int:
        """Delete every record created before `cutoff`. Returns the row count."""
        async def do_delete():
            async with self._session_factory() as session:
                result = await session.execute(
                    delete(CheckHistory).where(CheckHistory.created_at < cutoff)
                )
                await session.commit()
                return result.rowcount or 0

        async with self._write_lock:
            return await retry_on_lock(do_delete)

    async def delete_for_monitor(self, monitor_id: int) -> int:
        """Delete all records of one monitor."""
        async def do_delete():
            async with self._session_factory() as session:
                result = await session.execute(
                    delete(CheckHistory).where(CheckHistory.monitor_id == monitor_id)
                )
                await session.commit()
                return result.rowcount or 0

        async with self._write_lock:
            return await retry_on_lock(do_delete)
