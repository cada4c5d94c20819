"""Stats API for the dashboard header."""
from fastapi import APIRouter, Depends

from ..dependencies import get_pipeline
from ..schemas.stats import StatsSnapshot
from ..services.pipeline import MonitoringPipeline

router = APIRouter(prefix="/api/stats", tags=["stats"])


@router.get("", response_model=StatsSnapshot)
async def get_stats(pipeline: MonitoringPipeline = Depends(get_pipeline)):
    """Compute a fresh stats snapshot."""
    return await pipeline.aggregator.compute()
