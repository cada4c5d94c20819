"""Monitor CRUD API endpoints."""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from ..dependencies import get_pipeline
from ..schemas.monitor import (
    CheckResponse,
    MonitorCreate,
    MonitorResponse,
    MonitorUpdate,
    ResponseTimePoint,
)
from ..services.pipeline import MonitoringPipeline

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/monitors", tags=["monitors"])

# Points returned by the response time chart endpoint
RESPONSE_TIME_POINTS = 50


@router.get("", response_model=List[MonitorResponse])
async def list_monitors(pipeline: MonitoringPipeline = Depends(get_pipeline)):
    """List all monitors with their live state."""
    return await pipeline.monitors.list_all()


@router.post("", response_model=MonitorResponse, status_code=201)
async def create_monitor(monitor: MonitorCreate, pipeline: MonitoringPipeline = Depends(get_pipeline)):
    """Create a new monitor and probe it immediately."""
    db_monitor = await pipeline.monitors.create(
        name=monitor.name,
        url=monitor.url,
        icon=monitor.icon,
        is_third_party=monitor.is_third_party,
        paused=monitor.paused,
        check_interval=monitor.check_interval,
    )

    # Runs in the background; the response returns the unchecked monitor
    pipeline.scheduler.submit_probe(db_monitor.id)
    pipeline.notify_changed()
    return db_monitor


@router.get("/{monitor_id}", response_model=MonitorResponse)
async def get_monitor(monitor_id: int, pipeline: MonitoringPipeline = Depends(get_pipeline)):
    """Get a specific monitor by ID."""
    monitor = await pipeline.monitors.get(monitor_id)
    if not monitor:
        raise HTTPException(status_code=404, detail="Monitor not found")
    return monitor


@router.patch("/{monitor_id}", response_model=MonitorResponse)
async def update_monitor(
    monitor_id: int,
    update: MonitorUpdate,
    pipeline: MonitoringPipeline = Depends(get_pipeline),
):
    """Update a monitor's definition, e.g. pause or resume it."""
    fields = update.model_dump(exclude_unset=True, exclude_none=True)
    if not fields:
        monitor = await pipeline.monitors.get(monitor_id)
    else:
        monitor = await pipeline.monitors.update(monitor_id, **fields)

    if not monitor:
        raise HTTPException(status_code=404, detail="Monitor not found")

    if fields:
        # Pausing changes which monitors count towards the stats
        pipeline.notify_changed()
    return monitor


@router.delete("/{monitor_id}", status_code=204)
async def delete_monitor(monitor_id: int, pipeline: MonitoringPipeline = Depends(get_pipeline)):
    """Delete a monitor and its check history."""
    if not await pipeline.monitors.delete(monitor_id):
        raise HTTPException(status_code=404, detail="Monitor not found")

    await pipeline.broadcaster.publish_update("monitor_deleted", {"id": monitor_id})
    pipeline.notify_changed()


@router.post("/{monitor_id}/check", response_model=CheckResponse)
async def check_monitor(monitor_id: int, pipeline: MonitoringPipeline = Depends(get_pipeline)):
    """Probe a monitor now and wait for the result."""
    monitor = await pipeline.monitors.get(monitor_id)
    if not monitor:
        raise HTTPException(status_code=404, detail="Monitor not found")

    result = await pipeline.prober.run(monitor)
    if result is None:
        raise HTTPException(status_code=503, detail="Check result could not be recorded")

    return CheckResponse(
        status=result.status,
        response_time=result.response_time_ms,
        details=result.details,
    )


@router.get("/{monitor_id}/response-time", response_model=List[ResponseTimePoint])
async def get_response_times(monitor_id: int, pipeline: MonitoringPipeline = Depends(get_pipeline)):
    """Latest response times in chronological order, front-padded to a fixed length."""
    monitor = await pipeline.monitors.get(monitor_id)
    if not monitor:
        raise HTTPException(status_code=404, detail="Monitor not found")

    checks = await pipeline.history.most_recent(monitor_id, limit=RESPONSE_TIME_POINTS)
    points = [
        ResponseTimePoint(
            time=check.created_at.strftime("%I:%M %p"),
            response_time=float(check.response_time),
        )
        for check in reversed(checks)
    ]

    padding = [
        ResponseTimePoint(time="", response_time=0.0)
        for _ in range(RESPONSE_TIME_POINTS - len(points))
    ]
    return padding + points
