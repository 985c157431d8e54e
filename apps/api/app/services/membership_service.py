from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy.orm import Session

from app.core.error_codes import ErrorCode
from app.core.exceptions import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    ServiceError,
)
from app.models import Event, EventStatus
from app.models.base import utcnow
from app.repositories import EventRepository, ParticipantRepository, commit
from app.services.permissions import Actor

logger = structlog.get_logger()


def _locked_event(db: Session, event_id: Any) -> Event:
    event = EventRepository(db).get_for_update(event_id)
    if not event:
        raise NotFoundError(ErrorCode.EVENT_NOT_FOUND.value, "event not found")
    return event


def join_event(db: Session, actor: Actor, event_id: Any) -> Event:
    """
    Admit the actor to the event and flip it to full when the last seat goes.

    The event row stays locked from the status checks through the status
    write, so two concurrent joiners cannot both take the last seat.
    """
    participants = ParticipantRepository(db)
    try:
        event = _locked_event(db, event_id)

        if event.status == EventStatus.CANCELLED:
            raise InvalidStateError(ErrorCode.EVENT_CANCELLED.value, "event is cancelled")
        if event.status == EventStatus.FULL:
            raise InvalidStateError(ErrorCode.EVENT_FULL.value, "event is full")
        if event.scheduled_at <= utcnow():
            raise InvalidStateError(ErrorCode.EVENT_STARTED.value, "event has already started")

        if participants.exists(event.id, actor.user_id):
            raise ConflictError(ErrorCode.ALREADY_JOINED.value, "already joined this event")

        # Status can lag behind the count after an admin override.
        if participants.count(event.id) >= event.capacity:
            raise InvalidStateError(ErrorCode.EVENT_FULL.value, "event is full")

        participants.add(event.id, actor.user_id)

        count = participants.count(event.id)
        became_full = count >= event.capacity
        if became_full:
            event.status = EventStatus.FULL
            EventRepository(db).save(event)

        commit(db)
    except ServiceError:
        db.rollback()
        raise

    logger.info(
        "event_joined", event_id=str(event.id), user_id=str(actor.user_id), participants=count
    )
    if became_full:
        logger.info("event_full", event_id=str(event.id), capacity=event.capacity)
    return event


def leave_event(db: Session, actor: Actor, event_id: Any) -> Event:
    participants = ParticipantRepository(db)
    try:
        event = _locked_event(db, event_id)

        if not participants.exists(event.id, actor.user_id):
            raise InvalidStateError(
                ErrorCode.NOT_PARTICIPANT.value, "you are not a participant of this event"
            )

        participants.remove(event.id, actor.user_id)

        # Only a full event reopens; a cancelled one stays cancelled.
        reopened = event.status == EventStatus.FULL
        if reopened:
            event.status = EventStatus.OPEN
            EventRepository(db).save(event)

        commit(db)
    except ServiceError:
        db.rollback()
        raise

    logger.info("event_left", event_id=str(event.id), user_id=str(actor.user_id))
    if reopened:
        logger.info("event_reopened", event_id=str(event.id))
    return event
