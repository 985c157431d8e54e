from __future__ import annotations

import threading
import time
import uuid
from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy.orm import sessionmaker

from app.core.exceptions import ConflictError, InvalidStateError, NotFoundError
from app.db import build_engine, engine
from app.models import Base, Event, EventStatus
from app.repositories import ParticipantRepository
from app.services import events_service, membership_service
from app.services.permissions import Actor
from tests.factories import in_days


def _participants(db_session, event) -> int:
    return ParticipantRepository(db_session).count(event.id)


def test_last_seat_flips_event_to_full_and_leaving_reopens(db_session, make_event):
    first = Actor(user_id=uuid.uuid4())
    second = Actor(user_id=uuid.uuid4())
    event = make_event(capacity=1)

    joined = membership_service.join_event(db_session, first, event.id)
    assert joined.status == EventStatus.FULL

    with pytest.raises(InvalidStateError) as exc_info:
        membership_service.join_event(db_session, second, event.id)
    assert exc_info.value.code == "EVENT_FULL"

    left = membership_service.leave_event(db_session, first, event.id)
    assert left.status == EventStatus.OPEN

    rejoined = membership_service.join_event(db_session, second, event.id)
    assert rejoined.status == EventStatus.FULL
    assert _participants(db_session, event) == 1


def test_join_then_leave_restores_participant_count(db_session, make_event, other_user):
    event = make_event(capacity=5)

    membership_service.join_event(db_session, other_user, event.id)
    assert _participants(db_session, event) == 1

    membership_service.leave_event(db_session, other_user, event.id)
    assert _participants(db_session, event) == 0


def test_joining_twice_is_a_conflict(db_session, make_event, other_user):
    event = make_event()
    membership_service.join_event(db_session, other_user, event.id)

    with pytest.raises(ConflictError) as exc_info:
        membership_service.join_event(db_session, other_user, event.id)

    assert exc_info.value.code == "ALREADY_JOINED"
    assert _participants(db_session, event) == 1


def test_duplicate_insert_race_maps_to_conflict(db_session, make_event, other_user, monkeypatch):
    event = make_event()
    membership_service.join_event(db_session, other_user, event.id)

    # Simulate a concurrent joiner that passed the existence check first.
    monkeypatch.setattr(ParticipantRepository, "exists", lambda self, event_id, user_id: False)

    with pytest.raises(ConflictError) as exc_info:
        membership_service.join_event(db_session, other_user, event.id)

    assert exc_info.value.code == "ALREADY_JOINED"
    assert _participants(db_session, event) == 1


@pytest.mark.parametrize(
    ("overrides", "code"),
    [
        ({"status": EventStatus.CANCELLED}, "EVENT_CANCELLED"),
        ({"status": EventStatus.FULL}, "EVENT_FULL"),
        ({"scheduled_at": in_days(-1)}, "EVENT_STARTED"),
    ],
)
def test_join_rejected_by_event_state(db_session, make_event, other_user, overrides, code):
    event = make_event(**overrides)

    with pytest.raises(InvalidStateError) as exc_info:
        membership_service.join_event(db_session, other_user, event.id)

    assert exc_info.value.code == code
    assert _participants(db_session, event) == 0


def test_join_unknown_event_is_not_found(db_session, other_user):
    with pytest.raises(NotFoundError):
        membership_service.join_event(db_session, other_user, uuid.uuid4())


def test_join_after_admin_reopened_full_event_is_still_rejected(db_session, make_event):
    event = make_event(capacity=1)
    membership_service.join_event(db_session, Actor(user_id=uuid.uuid4()), event.id)
    events_service.admin_update_status(db_session, event.id, "open")

    with pytest.raises(InvalidStateError) as exc_info:
        membership_service.join_event(db_session, Actor(user_id=uuid.uuid4()), event.id)

    assert exc_info.value.code == "EVENT_FULL"
    assert _participants(db_session, event) == 1


def test_leave_without_membership_is_invalid(db_session, make_event, other_user):
    event = make_event()

    with pytest.raises(InvalidStateError) as exc_info:
        membership_service.leave_event(db_session, other_user, event.id)

    assert exc_info.value.code == "NOT_PARTICIPANT"


def test_leaving_a_cancelled_event_keeps_it_cancelled(
    db_session, make_event, creator, other_user
):
    event = make_event(capacity=1)
    membership_service.join_event(db_session, other_user, event.id)
    events_service.cancel_event(db_session, creator, event.id)

    left = membership_service.leave_event(db_session, other_user, event.id)

    assert left.status == EventStatus.CANCELLED
    assert _participants(db_session, event) == 0


@pytest.fixture
def race_engine(tmp_path):
    """Joiners need separate connections: file-backed SQLite, or the configured Postgres."""
    if engine.dialect.name == "postgresql":
        race = engine
    else:
        race = build_engine(f"sqlite+pysqlite:///{tmp_path / 'race.db'}")
    Base.metadata.create_all(race)
    yield race
    Base.metadata.drop_all(race)
    if race is not engine:
        race.dispose()


def test_concurrent_joiners_never_exceed_capacity(race_engine, creator, monkeypatch):
    RaceSession = sessionmaker(bind=race_engine, autoflush=False, expire_on_commit=False)
    with RaceSession() as db:
        event = Event(
            creator_id=creator.user_id,
            title="Last padel seat",
            sport_type="padel",
            scheduled_at=in_days(1),
            latitude=52.52,
            longitude=13.405,
            capacity=1,
            status=EventStatus.OPEN,
        )
        db.add(event)
        db.commit()
        event_id = event.id

    # Widen the window between the capacity checks and the insert.
    original_exists = ParticipantRepository.exists

    def slow_exists(self, event_id, user_id):
        time.sleep(0.05)
        return original_exists(self, event_id, user_id)

    monkeypatch.setattr(ParticipantRepository, "exists", slow_exists)

    joiners = 6
    barrier = threading.Barrier(joiners)

    def join(user_id: uuid.UUID) -> str:
        barrier.wait()
        with RaceSession() as db:
            try:
                membership_service.join_event(db, Actor(user_id=user_id), event_id)
            except InvalidStateError as err:
                return err.code
        return "joined"

    with ThreadPoolExecutor(max_workers=joiners) as executor:
        results = list(executor.map(join, [uuid.uuid4() for _ in range(joiners)]))

    assert results.count("joined") == 1
    assert results.count("EVENT_FULL") == joiners - 1

    with RaceSession() as db:
        assert ParticipantRepository(db).count(event_id) == 1
        assert db.get(Event, event_id).status == EventStatus.FULL
