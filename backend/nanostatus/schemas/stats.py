"""Aggregate health statistics."""
from .monitor import CamelModel


class StatsSnapshot(CamelModel):
    """Point-in-time health summary of all unpaused monitors.

    Equality is field-by-field, which is what the debouncer relies on.
    """
    overall_uptime: float = 0.0
    services_up: int = 0
    services_down: int = 0
    avg_response_time: int = 0
