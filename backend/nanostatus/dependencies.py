"""FastAPI dependencies."""
from fastapi import Request

from .services.pipeline import MonitoringPipeline


def get_pipeline(request: Request) -> MonitoringPipeline:
    """The pipeline created by the application lifespan."""
    return request.app.state.pipeline
