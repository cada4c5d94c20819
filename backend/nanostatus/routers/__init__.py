"""API routers."""
from .monitors import router as monitors_router
from .stats import router as stats_router
from .events import router as events_router

__all__ = ["monitors_router", "stats_router", "events_router"]
