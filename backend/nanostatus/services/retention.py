"""Retention - purges check history past the retention horizon."""
import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from ..utils.time_utils import utcnow
from .history import HistoryStore

logger = logging.getLogger(__name__)


class RetentionService:
    """Deletes check records older than `retention_days`."""

    def __init__(self, history: HistoryStore, retention_days: int = 365):
        self.history = history
        self.retention_days = retention_days

    def cutoff(self, now: Optional[datetime] = None) -> datetime:
        return (now or utcnow()) - timedelta(days=self.retention_days)

    async def sweep(self, now: Optional[datetime] = None) -> int:
        """Run one purge. Store errors are logged; the next scheduled run retries."""
        cutoff = self.cutoff(now)
        logger.info(f"Cleaning up check history older than {cutoff:%Y-%m-%d %H:%M:%S}")
        try:
            deleted = await self.history.delete_older_than(cutoff)
        except SQLAlchemyError as e:
            logger.error(f"Failed to clean old check history: {e}")
            return 0

        logger.info(f"Deleted {deleted} check history records older than {self.retention_days} days")
        return deleted
