"""Pydantic schemas for API request/response models."""
from .monitor import (
    MonitorCreate,
    MonitorUpdate,
    MonitorResponse,
    CheckResponse,
    ResponseTimePoint,
)
from .stats import StatsSnapshot

__all__ = [
    "MonitorCreate",
    "MonitorUpdate",
    "MonitorResponse",
    "CheckResponse",
    "ResponseTimePoint",
    "StatsSnapshot",
]
