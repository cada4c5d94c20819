"""Unit tests for uptime derivation and the stats aggregator."""
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from nanostatus.services.stats import StatsAggregator, calculate_uptime
from nanostatus.utils.time_utils import utcnow

from helpers import add_checks


@pytest.fixture
def aggregator(monitors, history):
    return StatsAggregator(monitors, history)


async def _monitor(monitors, name, status, response_time=100, paused=False):
    monitor = await monitors.create(name=name, url=f"https://{name.lower()}.example.com", paused=paused)
    if status != "unknown":
        await monitors.apply_result(monitor.id, status, response_time, 0.0, utcnow())
    return monitor


@pytest.mark.asyncio
async def test_uptime_all_up_is_100(monitors, history):
    monitor = await monitors.create(name="A", url="https://a.example.com")
    await add_checks(history, monitor.id, ["up"] * 24, utcnow() - timedelta(hours=1))
    assert await calculate_uptime(history, monitor.id, "down") == 100.0


@pytest.mark.asyncio
async def test_uptime_all_down_is_0(monitors, history):
    monitor = await monitors.create(name="A", url="https://a.example.com")
    await add_checks(history, monitor.id, ["down"] * 24, utcnow() - timedelta(hours=1))
    assert await calculate_uptime(history, monitor.id, "up") == 0.0


@pytest.mark.asyncio
async def test_uptime_mixed(monitors, history):
    monitor = await monitors.create(name="A", url="https://a.example.com")
    await add_checks(history, monitor.id, ["up", "up", "up", "down"], utcnow() - timedelta(minutes=5))
    assert await calculate_uptime(history, monitor.id, "up") == 75.0


@pytest.mark.asyncio
@pytest.mark.parametrize("status,expected", [("up", 100.0), ("down", 0.0), ("unknown", 0.0)])
async def test_uptime_without_recent_checks_follows_status(monitors, history, status, expected):
    monitor = await monitors.create(name="A", url="https://a.example.com")
    # Outside the 24h window
    await add_checks(history, monitor.id, ["down", "up"], utcnow() - timedelta(hours=25))
    assert await calculate_uptime(history, monitor.id, status) == expected


@pytest.mark.asyncio
async def test_overall_uptime_is_monitor_weighted(monitors, history, aggregator):
    now = utcnow()
    a = await _monitor(monitors, "A", "up")
    b = await _monitor(monitors, "B", "up")
    c = await _monitor(monitors, "C", "down")
    # Uneven check counts must not weight the mean
    await add_checks(history, a.id, ["up"] * 10, now - timedelta(minutes=1))
    await add_checks(history, b.id, ["up", "down"], now - timedelta(minutes=1))
    await add_checks(history, c.id, ["down"], now - timedelta(minutes=1))

    snapshot = await aggregator.compute()

    assert snapshot.overall_uptime == pytest.approx(50.0)
    assert snapshot.services_up == 2
    assert snapshot.services_down == 1


@pytest.mark.asyncio
async def test_paused_monitors_are_excluded(monitors, history, aggregator):
    now = utcnow()
    up = await _monitor(monitors, "Up", "up", response_time=100)
    paused = await _monitor(monitors, "Paused", "down", response_time=0, paused=True)
    await add_checks(history, up.id, ["up"], now - timedelta(minutes=1), response_time=100)
    await add_checks(history, paused.id, ["down"], now - timedelta(minutes=1))

    snapshot = await aggregator.compute()

    assert snapshot.services_up == 1
    assert snapshot.services_down == 0
    assert snapshot.overall_uptime == 100.0


@pytest.mark.asyncio
async def test_unchecked_monitor_counts_as_down(monitors, aggregator):
    await _monitor(monitors, "New", "unknown")
    snapshot = await aggregator.compute()
    assert snapshot.services_up == 0
    assert snapshot.services_down == 1
    assert snapshot.overall_uptime == 0.0


@pytest.mark.asyncio
async def test_no_monitors_yields_zero_snapshot(aggregator):
    snapshot = await aggregator.compute()
    assert snapshot.model_dump() == {
        "overall_uptime": 0.0,
        "services_up": 0,
        "services_down": 0,
        "avg_response_time": 0,
    }


@pytest.mark.asyncio
async def test_avg_response_time_uses_positive_recent_checks(monitors, history, aggregator):
    now = utcnow()
    a = await _monitor(monitors, "A", "up", response_time=999)
    await add_checks(history, a.id, ["up"], now - timedelta(minutes=1), response_time=100)
    await add_checks(history, a.id, ["up"], now - timedelta(minutes=2), response_time=201)
    await add_checks(history, a.id, ["down"], now - timedelta(minutes=3), response_time=0)
    await add_checks(history, a.id, ["up"], now - timedelta(hours=30), response_time=5000)

    snapshot = await aggregator.compute()

    # (100 + 201) / 2 truncated
    assert snapshot.avg_response_time == 150


@pytest.mark.asyncio
async def test_avg_response_time_falls_back_to_live_latency(monitors, history, aggregator):
    a = await _monitor(monitors, "A", "up", response_time=100)
    await _monitor(monitors, "B", "up", response_time=300)
    await _monitor(monitors, "C", "down", response_time=0)
    await _monitor(monitors, "Paused", "up", response_time=10000, paused=True)
    await add_checks(history, a.id, ["up"], utcnow() - timedelta(hours=30), response_time=5000)

    snapshot = await aggregator.compute()

    assert snapshot.avg_response_time == 200


@pytest.mark.asyncio
async def test_avg_response_time_zero_without_data(monitors, aggregator):
    await _monitor(monitors, "A", "down", response_time=0)
    snapshot = await aggregator.compute()
    assert snapshot.avg_response_time == 0


@pytest.mark.asyncio
async def test_history_read_failure_degrades_to_fallbacks(monitors, history):
    monitor = await _monitor(monitors, "A", "up", response_time=80)
    await monitors.apply_result(monitor.id, "up", 80, 90.0, utcnow())

    failing = AsyncMock()
    error = OperationalError("SELECT", {}, Exception("disk I/O error"))
    failing.window_counts.side_effect = error
    failing.average.side_effect = error

    snapshot = await StatsAggregator(monitors, failing).compute()

    assert snapshot.overall_uptime == 90.0
    assert snapshot.avg_response_time == 80


def test_snapshot_serializes_camel_case():
    from nanostatus.schemas.stats import StatsSnapshot

    snapshot = StatsSnapshot(overall_uptime=99.5, services_up=3, services_down=1, avg_response_time=120)
    assert snapshot.model_dump(by_alias=True) == {
        "overallUptime": 99.5,
        "servicesUp": 3,
        "servicesDown": 1,
        "avgResponseTime": 120,
    }
