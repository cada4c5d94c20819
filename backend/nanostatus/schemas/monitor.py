"""Monitor schemas for API.

Field names are serialized in camelCase to match the dashboard frontend.
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that reads snake_case or camelCase and writes camelCase."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MonitorCreate(CamelModel):
    """Schema for creating a new monitor."""
    name: str = Field(..., min_length=1, max_length=255)
    url: str = Field(..., min_length=1)
    icon: Optional[str] = None
    is_third_party: bool = False
    paused: bool = False
    check_interval: int = Field(default=60, ge=10, le=3600)


class MonitorUpdate(CamelModel):
    """Schema for updating a monitor. Live fields are not writable."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    url: Optional[str] = Field(None, min_length=1)
    icon: Optional[str] = None
    is_third_party: Optional[bool] = None
    paused: Optional[bool] = None
    check_interval: Optional[int] = Field(None, ge=10, le=3600)


class MonitorResponse(CamelModel):
    """Schema for monitor in API responses and live updates."""
    id: int
    name: str
    url: str
    icon: Optional[str] = None
    check_interval: int
    is_third_party: bool
    paused: bool
    status: str  # up, down, unknown
    response_time: int
    last_check: str
    last_checked_at: Optional[datetime] = None
    uptime: float
    created_at: datetime
    updated_at: datetime


class CheckResponse(CamelModel):
    """Outcome of an on-demand probe."""
    status: str
    response_time: int
    details: Optional[str] = None


class ResponseTimePoint(CamelModel):
    """A point in the response time chart. Padding points have an empty time."""
    time: str
    response_time: float
