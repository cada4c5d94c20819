"""Monitor model - services being watched."""
from sqlalchemy import Boolean, Column, DateTime, Float, Integer, String
from sqlalchemy.orm import relationship

from ..database import Base
from ..utils.time_utils import utcnow


class Monitor(Base):
    """A monitored service and its live state.

    The live fields (status, response_time, last_check, last_checked_at, uptime)
    are written only by the probe pipeline.
    """

    __tablename__ = "monitors"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    url = Column(String, nullable=False)  # URL, bare hostname, or ping://host
    icon = Column(String, nullable=True)
    check_interval = Column(Integer, default=60)  # seconds, advisory
    is_third_party = Column(Boolean, default=False, nullable=False)
    paused = Column(Boolean, default=False, nullable=False)

    # Live fields
    status = Column(String, default="unknown", nullable=False)  # up, down, unknown
    response_time = Column(Integer, default=0, nullable=False)  # ms
    last_check = Column(String, default="never", nullable=False)
    last_checked_at = Column(DateTime, nullable=True)
    uptime = Column(Float, default=0.0, nullable=False)  # 24h percentage

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    checks = relationship(
        "CheckHistory",
        back_populates="monitor",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
