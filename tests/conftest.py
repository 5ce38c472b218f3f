"""Pytest fixtures and configuration for tasktimer tests."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from tasktimer.database.database import Base
from tasktimer.database import models  # noqa: F401
from tasktimer.database.kv_store import SqlKeyValueStore
from tasktimer.database.task_repository import TaskRepository
from tasktimer.database.category_repository import CategoryRepository
from tasktimer.database.timer_repository import TimerRepository
from tasktimer.models.constants import MS_PER_MINUTE


# Use in-memory SQLite database for tests
TEST_DATABASE_URL = "sqlite:///:memory:"

# 2023-11-14T22:13:20Z
START_MS = 1_700_000_000_000


class FakeClock:
    """Controllable epoch-millisecond clock."""

    def __init__(self, start: int = START_MS):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, minutes: float = 0, seconds: float = 0) -> int:
        self.now += int(minutes * MS_PER_MINUTE + seconds * 1000)
        return self.now


@pytest.fixture(scope="function")
def db_session():
    """Create a database session for testing.

    Uses an in-memory SQLite database that is created fresh for each test.
    """
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )
    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def kv_store(db_session: Session):
    return SqlKeyValueStore(db_session)


@pytest.fixture
def task_repository(kv_store, clock):
    """Create a TaskRepository instance for testing."""
    return TaskRepository(kv_store, clock=clock)


@pytest.fixture
def category_repository(kv_store, clock):
    return CategoryRepository(kv_store, clock=clock)


@pytest.fixture
def timer_repository(kv_store, task_repository, clock):
    return TimerRepository(kv_store, task_repository, clock=clock)


@pytest.fixture
def sample_task_data():
    """Base task payload (wire format) that can be overridden."""
    return {
        "title": "Write weekly report",
        "description": "Summarize the sprint",
        "targetTime": 30,
        "deadline": {"date": "2026-10-20", "time": "18:00"},
        "order": 0,
    }


@pytest.fixture
def sample_task(task_repository, sample_task_data):
    return task_repository.create(sample_task_data)


@pytest.fixture
def test_client(db_session: Session, monkeypatch):
    """Create a FastAPI test client with the database dependency overridden."""
    from tasktimer.api.app import app, get_db

    # Keep the lifespan-managed handle off the filesystem.
    monkeypatch.setenv("DATABASE_URL", TEST_DATABASE_URL)
    monkeypatch.setenv("RUN_MIGRATIONS", "False")

    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Don't close the session here, let the fixture handle it

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
