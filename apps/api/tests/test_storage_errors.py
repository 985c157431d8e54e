from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from app.api.v1.schemas.events import EventCreate
from app.core.exceptions import StorageError
from app.models import Event
from app.repositories import ParticipantRepository
from app.services import events_service, membership_service
from tests.factories import auth_headers, in_days


def _disk_failure(*args, **kwargs):
    raise OperationalError("INSERT INTO event_participants", {}, Exception("disk I/O error"))


def test_failed_insert_surfaces_as_storage_error(
    db_session, make_event, other_user, monkeypatch, caplog
):
    event = make_event()
    monkeypatch.setattr(db_session, "flush", _disk_failure)

    with pytest.raises(StorageError) as exc_info:
        membership_service.join_event(db_session, other_user, event.id)

    assert exc_info.value.code == "STORAGE_UNAVAILABLE"
    assert "disk I/O" not in exc_info.value.message
    assert "storage_error" in caplog.text
    assert ParticipantRepository(db_session).count(event.id) == 0


def test_failed_commit_rolls_back_the_new_event(db_session, creator, monkeypatch):
    monkeypatch.setattr(db_session, "commit", _disk_failure)
    payload = EventCreate(
        title="Beach volleyball",
        sport_type="volleyball",
        scheduled_at=in_days(1),
        latitude=52.52,
        longitude=13.405,
        capacity=4,
    )

    with pytest.raises(StorageError):
        events_service.create_event(db_session, creator, payload)

    assert db_session.scalar(select(func.count()).select_from(Event)) == 0


def test_storage_failure_answers_503_without_driver_detail(
    client: TestClient, db_session, make_event, other_user, monkeypatch
):
    event = make_event()
    monkeypatch.setattr(Session, "flush", _disk_failure)

    resp = client.post(f"/v1/events/{event.id}/join", headers=auth_headers(other_user))

    assert resp.status_code == 503
    assert resp.json() == {
        "detail": {"code": "STORAGE_UNAVAILABLE", "message": "storage unavailable"}
    }
    assert "disk I/O" not in resp.text
    assert ParticipantRepository(db_session).count(event.id) == 0
