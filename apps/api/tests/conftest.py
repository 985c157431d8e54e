from __future__ import annotations

import os
import uuid

import pytest
from fastapi.testclient import TestClient

# Settings are read at import time, so configure them before importing the app
os.environ["DATABASE_URL"] = os.environ.get("TEST_DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("ENV", "test")
os.environ.setdefault("JWT_SECRET", "test_jwt_secret_32_chars_minimum")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("AUTO_CREATE_TABLES", "false")

from app.db import SessionLocal, engine  # noqa: E402
from app.main import app  # noqa: E402
from app.models import Base, Event, EventStatus  # noqa: E402
from app.services.permissions import Actor, ActorRole  # noqa: E402
from tests.factories import in_days  # noqa: E402


@pytest.fixture
def tables():
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture
def client(tables) -> TestClient:
    return TestClient(app)


@pytest.fixture
def db_session(tables):
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def creator() -> Actor:
    return Actor(user_id=uuid.uuid4())


@pytest.fixture
def other_user() -> Actor:
    return Actor(user_id=uuid.uuid4())


@pytest.fixture
def admin() -> Actor:
    return Actor(user_id=uuid.uuid4(), role=ActorRole.ADMIN)


@pytest.fixture
def make_event(db_session, creator):
    """Insert an event row directly, bypassing service validation."""

    def _make(**overrides) -> Event:
        values = {
            "creator_id": creator.user_id,
            "title": "Pickup football",
            "sport_type": "football",
            "scheduled_at": in_days(1),
            "latitude": 52.52,
            "longitude": 13.405,
            "capacity": 10,
            "status": EventStatus.OPEN,
        }
        values.update(overrides)
        event = Event(**values)
        db_session.add(event)
        db_session.commit()
        return event

    return _make
