"""Services for probing, scheduling, aggregation and live updates."""
from .broadcaster import Broadcaster, Subscription
from .checker import CheckerService, CheckResult
from .debouncer import StatsDebouncer
from .history import CheckRecord, HistoryStore
from .monitor_store import MonitorStore
from .pipeline import MonitoringPipeline
from .prober import ProbeRunner
from .retention import RetentionService
from .scheduler import SchedulerService
from .stats import StatsAggregator, calculate_uptime

__all__ = [
    "Broadcaster",
    "Subscription",
    "CheckerService",
    "CheckResult",
    "StatsDebouncer",
    "CheckRecord",
    "HistoryStore",
    "MonitorStore",
    "MonitoringPipeline",
    "ProbeRunner",
    "RetentionService",
    "SchedulerService",
    "StatsAggregator",
    "calculate_uptime",
]
