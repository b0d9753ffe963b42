"""
Pytest configuration and shared fixtures.

This module provides common fixtures for all test modules.
"""

import pytest
from datetime import datetime, timedelta
from typing import Dict, Any, List

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from pvtest.config import Settings
from pvtest.db.database import Base, get_db
from pvtest.core.lifecycle import ExperimentLifecycleManager
import pvtest.models  # noqa: F401  registers tables on Base


class FakeClock:
    """Controllable replacement for the lifecycle clock."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float):
        self.now += timedelta(seconds=seconds)


# Database fixtures
@pytest.fixture
def engine():
    """In-memory SQLite engine shared across connections."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


# Lifecycle fixtures
@pytest.fixture
def settings() -> Settings:
    return Settings(alert_suppression_seconds=0.0, reference_area_m2=1.0)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 6, 1, 12, 0, 0))


@pytest.fixture
def manager(db_session, settings, clock) -> ExperimentLifecycleManager:
    return ExperimentLifecycleManager(db_session, settings=settings, clock=clock)


# API fixtures
@pytest.fixture
def client(session_factory):
    """Test client with get_db bound to the in-memory database."""
    from pvtest.main import app

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


# Sample measurement fixtures
@pytest.fixture
def iv_sweep_points() -> List[Dict[str, Any]]:
    """Short IV sweep from short circuit to open circuit."""
    t0 = datetime(2024, 6, 1, 12, 0, 0)
    samples = [
        (0.05, 8.0),
        (10.0, 7.8),
        (20.0, 7.2),
        (30.0, 6.0),
        (36.0, 3.0),
        (40.0, 0.05),
    ]
    return [
        {
            "timestamp": t0 + timedelta(seconds=i),
            "voltage": v,
            "current": c,
            "power": v * c,
        }
        for i, (v, c) in enumerate(samples)
    ]


@pytest.fixture
def scenario_points() -> List[Dict[str, Any]]:
    """Three samples: loaded, near short circuit, near open circuit."""
    t0 = datetime(2024, 6, 1, 12, 0, 0)
    return [
        {"timestamp": t0, "voltage": 20.0, "current": 5.0},
        {"timestamp": t0 + timedelta(seconds=1), "voltage": 0.05, "current": 5.0},
        {"timestamp": t0 + timedelta(seconds=2), "voltage": 20.0, "current": 0.05},
    ]
