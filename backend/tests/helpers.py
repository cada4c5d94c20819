"""Test helpers shared across modules."""
from datetime import datetime
from typing import Optional

import httpx

from nanostatus.services.history import CheckRecord, HistoryStore


def status_transport(status_code: int) -> httpx.MockTransport:
    """Transport answering every request with the given status code."""
    return httpx.MockTransport(lambda request: httpx.Response(status_code))


async def add_checks(
    history: HistoryStore,
    monitor_id: int,
    statuses: list,
    at: datetime,
    response_time: Optional[int] = None,
):
    """Append one record per status, all stamped `at`."""
    for status in statuses:
        latency = response_time if response_time is not None else (100 if status == "up" else 0)
        await history.append(CheckRecord(
            monitor_id=monitor_id,
            status=status,
            response_time=latency,
            created_at=at,
        ))
