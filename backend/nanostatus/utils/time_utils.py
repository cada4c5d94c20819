"""Time helpers.

Timestamps are stored as naive UTC datetimes.
"""
from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Current time as a naive UTC datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def format_last_check(previous: Optional[datetime], now: datetime) -> str:
    """Human-readable age of the previous monitor update.

    Under a minute reads "just now", under an hour "<n>m ago", otherwise "<n>h ago".
    """
    if previous is None:
        return "just now"

    elapsed = now - previous
    if elapsed.total_seconds() <= 60:
        return "just now"

    minutes = int(elapsed.total_seconds() // 60)
    if minutes < 60:
        return f"{minutes}m ago"
    return f"{minutes // 60}h ago"
