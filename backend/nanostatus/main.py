"""Main FastAPI application."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .database import init_db, close_db, async_session
from .routers import monitors_router, stats_router, events_router
from .services.pipeline import MonitoringPipeline

# Configure logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown."""
    logger.info("Starting NanoStatus")

    # An unreachable store at startup is fatal
    await init_db()
    logger.info("Database initialized")

    pipeline = MonitoringPipeline(settings, async_session)
    app.state.pipeline = pipeline
    await pipeline.start()

    yield

    await pipeline.stop()
    await close_db()
    logger.info("Shutdown complete")


def create_app(use_lifespan: bool = True) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="NanoStatus",
        description="Lightweight uptime dashboard with live updates",
        version="1.0.0",
        lifespan=lifespan if use_lifespan else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(monitors_router)
    app.include_router(stats_router)
    app.include_router(events_router)

    @app.get("/health")
    async def health_check():
        pipeline = getattr(app.state, "pipeline", None)
        return {
            "status": "healthy",
            "scheduler_running": bool(pipeline and pipeline.scheduler.running),
            "observers": pipeline.broadcaster.subscriber_count if pipeline else 0,
        }

    return app


# Create the application instance
app = create_app()


def run():
    """Console entry point."""
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.web_port)


if __name__ == "__main__":
    run()
