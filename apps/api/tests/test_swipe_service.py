from __future__ import annotations

import uuid

import pytest
from sqlalchemy import func, select

from app.core.exceptions import NotFoundError, ValidationError
from app.models import EventStatus, EventSwipe, SwipeAction
from app.services import swipe_service


def _swipe_rows(db_session, event_id, user_id) -> int:
    return db_session.scalar(
        select(func.count())
        .select_from(EventSwipe)
        .where(EventSwipe.event_id == event_id, EventSwipe.user_id == user_id)
    )


def test_repeated_like_keeps_a_single_untouched_record(db_session, make_event, other_user):
    event = make_event()

    first = swipe_service.record_swipe(db_session, other_user, event.id, "like")
    first_updated_at = first.updated_at

    second = swipe_service.record_swipe(db_session, other_user, event.id, "like")

    assert second.action == SwipeAction.LIKE
    assert second.updated_at == first_updated_at
    assert _swipe_rows(db_session, event.id, other_user.user_id) == 1


def test_changing_the_decision_overwrites_the_record(db_session, make_event, other_user):
    event = make_event()

    swipe_service.record_swipe(db_session, other_user, event.id, SwipeAction.LIKE)
    swipe = swipe_service.record_swipe(db_session, other_user, event.id, SwipeAction.SKIP)

    assert swipe.action == SwipeAction.SKIP
    assert _swipe_rows(db_session, event.id, other_user.user_id) == 1


def test_swipes_are_kept_per_user(db_session, make_event, creator, other_user):
    event = make_event()

    swipe_service.record_swipe(db_session, creator, event.id, "skip")
    swipe_service.record_swipe(db_session, other_user, event.id, "like")

    total = db_session.scalar(
        select(func.count()).select_from(EventSwipe).where(EventSwipe.event_id == event.id)
    )
    assert total == 2


def test_swipe_on_cancelled_event_is_recorded(db_session, make_event, other_user):
    event = make_event(status=EventStatus.CANCELLED)

    swipe = swipe_service.record_swipe(db_session, other_user, event.id, "like")

    assert swipe.event_id == event.id
    assert swipe.user_id == other_user.user_id


def test_swipe_on_unknown_event_is_not_found(db_session, other_user):
    with pytest.raises(NotFoundError) as exc_info:
        swipe_service.record_swipe(db_session, other_user, uuid.uuid4(), "like")
    assert exc_info.value.code == "EVENT_NOT_FOUND"


def test_unknown_action_is_rejected(db_session, make_event, other_user):
    event = make_event()

    with pytest.raises(ValidationError):
        swipe_service.record_swipe(db_session, other_user, event.id, "superlike")

    assert _swipe_rows(db_session, event.id, other_user.user_id) == 0
