"""Database models."""
from .monitor import Monitor
from .check_history import CheckHistory

__all__ = ["Monitor", "CheckHistory"]
