"""Shared test fixtures."""

import os

# Keep the app factory and models away from any real database
os.environ.setdefault('STORE_BACKEND', 'memory')
os.environ.setdefault('DATABASE_URL', 'sqlite://')

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from usaa.app import create_app
from usaa.models import init_db
from usaa.store import MemoryStore, SqlStore
from usaa.tracking import CONTROLLER, PILOT, EntityIndex


class FakeClock:
    """Deterministic clock that moves forward one second per reading."""

    def __init__(self, start: datetime = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        current = self.now
        self.now += timedelta(seconds=1)
        return current


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def sql_store(tmp_path):
    """SqlStore on a throwaway SQLite file."""
    engine = create_engine(
        f'sqlite:///{tmp_path / "kv.db"}',
        connect_args={'check_same_thread': False},
    )
    init_db(bind=engine)
    factory = sessionmaker(bind=engine, expire_on_commit=False)
    yield SqlStore(session_factory=factory)
    engine.dispose()


@pytest.fixture(params=['memory', 'sql'])
def store(request):
    """Each index test runs against both backends."""
    return request.getfixturevalue(f'{request.param}_store')


@pytest.fixture
def controllers(store, clock):
    index = EntityIndex(store, CONTROLLER, clock=clock)
    yield index
    index.close()


@pytest.fixture
def pilots(store, clock):
    index = EntityIndex(store, PILOT, clock=clock)
    yield index
    index.close()


@pytest.fixture
def app(memory_store, clock):
    app = create_app(store=memory_store, clock=clock)
    app.testing = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()
