"""Live update stream (Server-Sent Events)."""
import logging
import uuid
from typing import AsyncIterator

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse
from sqlalchemy.exc import SQLAlchemyError

from ..dependencies import get_pipeline
from ..services.broadcaster import Subscription, encode_update
from ..services.debouncer import STATS_UPDATE
from ..services.pipeline import MonitoringPipeline

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["events"])


def format_event(message: str) -> str:
    """Frame an encoded update as a single SSE event."""
    return f"data: {message}\n\n"


async def event_stream(
    pipeline: MonitoringPipeline,
    subscription: Subscription,
    request: Request,
) -> AsyncIterator[str]:
    """Yield the current stats, then every broadcast until the observer leaves."""
    try:
        try:
            snapshot = await pipeline.aggregator.compute()
        except SQLAlchemyError as e:
            logger.error(f"Error computing initial stats for {subscription.id}, skipping: {e}")
        else:
            yield format_event(encode_update(STATS_UPDATE, snapshot.model_dump(by_alias=True)))

        async for message in subscription:
            if await request.is_disconnected():
                break
            yield format_event(message)
    finally:
        await pipeline.broadcaster.unsubscribe(subscription.id)


@router.get("/events")
async def stream_events(request: Request, pipeline: MonitoringPipeline = Depends(get_pipeline)):
    """Open a live update stream for one observer."""
    session_id = uuid.uuid4().hex
    subscription = await pipeline.broadcaster.subscribe(session_id)
    return StreamingResponse(
        event_stream(pipeline, subscription, request),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
