"""Shared fixtures: a throwaway SQLite database per test."""
import pytest

from nanostatus.database import build_engine, build_session_factory, init_db
from nanostatus.services.history import HistoryStore
from nanostatus.services.monitor_store import MonitorStore


@pytest.fixture
async def engine(tmp_path):
    db_engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_db(db_engine)
    yield db_engine
    await db_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def monitors(session_factory, history):
    return MonitorStore(session_factory, history)


@pytest.fixture
def history(session_factory):
    return HistoryStore(session_factory)

