"""CheckHistory model - append-only ledger of probe outcomes."""
from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from ..database import Base
from ..utils.time_utils import utcnow


class CheckHistory(Base):
    """Result of one probe. Never updated after insert."""

    __tablename__ = "check_history"
    __table_args__ = (
        Index("ix_check_history_monitor_created", "monitor_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    monitor_id = Column(Integer, ForeignKey("monitors.id", ondelete="CASCADE"), nullable=False)
    status = Column(String, nullable=False)  # up, down
    response_time = Column(Integer, default=0, nullable=False)  # ms, 0 when down
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    monitor = relationship("Monitor", back_populates="checks")
