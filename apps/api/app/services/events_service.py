from __future__ import annotations

from datetime import datetime
from typing import Any

import structlog
from sqlalchemy.orm import Session

from app.api.v1.schemas.events import EventCreate, EventUpdate
from app.core.error_codes import ErrorCode
from app.core.exceptions import (
    ConflictError,
    NotFoundError,
    ServiceError,
    ValidationError,
)
from app.models import Event, EventStatus
from app.models.base import ensure_utc, utcnow
from app.repositories import EventRepository, ParticipantRepository, commit
from app.services.permissions import Actor, require_manage_permission

logger = structlog.get_logger()

REQUIRED_FIELDS = ("title", "sport_type", "scheduled_at", "latitude", "longitude", "capacity")


def _invalid(message: str) -> ValidationError:
    return ValidationError(ErrorCode.INVALID_FIELD.value, message)


def _validate_scheduled_at(value: datetime) -> datetime:
    value = ensure_utc(value)
    if value <= utcnow():
        raise _invalid("scheduled_at must be in the future")
    return value


def _validate_latitude(value: float) -> None:
    if not -90 <= value <= 90:
        raise _invalid("latitude must be between -90 and 90")


def _validate_longitude(value: float) -> None:
    if not -180 <= value <= 180:
        raise _invalid("longitude must be between -180 and 180")


def _validate_capacity(value: int) -> None:
    if value < 1:
        raise _invalid("capacity must be at least 1")


def _not_found() -> NotFoundError:
    return NotFoundError(ErrorCode.EVENT_NOT_FOUND.value, "event not found")


def create_event(db: Session, actor: Actor, payload: EventCreate) -> Event:
    scheduled_at = _validate_scheduled_at(payload.scheduled_at)
    _validate_latitude(payload.latitude)
    _validate_longitude(payload.longitude)
    _validate_capacity(payload.capacity)

    event = Event(
        creator_id=actor.user_id,
        title=payload.title,
        sport_type=payload.sport_type,
        scheduled_at=scheduled_at,
        location_name=payload.location_name,
        address=payload.address,
        latitude=payload.latitude,
        longitude=payload.longitude,
        capacity=payload.capacity,
        description=payload.description,
        status=EventStatus.OPEN,
    )
    EventRepository(db).add(event)
    commit(db)

    logger.info("event_created", event_id=str(event.id), creator_id=str(actor.user_id))
    return event


def get_event(db: Session, event_id: Any) -> tuple[Event, int]:
    found = EventRepository(db).get_with_participant_count(event_id)
    if found is None:
        raise _not_found()
    return found


def update_event(db: Session, actor: Actor, event_id: Any, patch: EventUpdate) -> Event:
    events = EventRepository(db)
    try:
        event = events.get_for_update(event_id)
        if not event:
            raise _not_found()

        require_manage_permission(actor, event.creator_id)

        patch_data = patch.model_dump(exclude_unset=True)
        for key in REQUIRED_FIELDS:
            if key in patch_data and patch_data[key] is None:
                raise _invalid(f"{key} cannot be null")

        if "scheduled_at" in patch_data:
            patch_data["scheduled_at"] = _validate_scheduled_at(patch_data["scheduled_at"])
        if "latitude" in patch_data:
            _validate_latitude(patch_data["latitude"])
        if "longitude" in patch_data:
            _validate_longitude(patch_data["longitude"])

        capacity_changed = (
            "capacity" in patch_data and patch_data["capacity"] != event.capacity
        )
        if capacity_changed:
            _validate_capacity(patch_data["capacity"])

        for key, value in patch_data.items():
            setattr(event, key, value)

        if capacity_changed and event.status != EventStatus.CANCELLED:
            count = ParticipantRepository(db).count(event.id)
            if event.capacity < count:
                raise ConflictError(
                    ErrorCode.CAPACITY_BELOW_PARTICIPANTS.value,
                    "capacity cannot be below the current participant count",
                )
            event.status = EventStatus.FULL if count >= event.capacity else EventStatus.OPEN

        events.save(event)
        commit(db)
    except ServiceError:
        db.rollback()
        raise

    logger.info(
        "event_updated",
        event_id=str(event.id),
        actor_id=str(actor.user_id),
        fields=sorted(patch_data),
    )
    return event


def cancel_event(db: Session, actor: Actor, event_id: Any) -> Event:
    events = EventRepository(db)
    try:
        event = events.get_for_update(event_id)
        if not event:
            raise _not_found()

        require_manage_permission(actor, event.creator_id)

        if event.status != EventStatus.CANCELLED:
            event.status = EventStatus.CANCELLED
            event.cancelled_at = utcnow()
            events.save(event)
        commit(db)
    except ServiceError:
        db.rollback()
        raise

    logger.info("event_cancelled", event_id=str(event.id), actor_id=str(actor.user_id))
    return event


def admin_update_status(db: Session, event_id: Any, status: str) -> Event:
    """Direct status assignment by an admin. Capacity is not recomputed."""
    try:
        new_status = EventStatus(status)
    except ValueError:
        raise ValidationError(
            ErrorCode.INVALID_STATUS.value, "status must be one of open, full, cancelled"
        ) from None

    events = EventRepository(db)
    try:
        event = events.get_for_update(event_id)
        if not event:
            raise _not_found()

        previous = event.status
        event.status = new_status
        if new_status == EventStatus.CANCELLED and event.cancelled_at is None:
            event.cancelled_at = utcnow()
        elif new_status != EventStatus.CANCELLED:
            event.cancelled_at = None
        events.save(event)
        commit(db)
    except ServiceError:
        db.rollback()
        raise

    logger.info(
        "event_status_overridden",
        event_id=str(event.id),
        previous=previous.value,
        status=new_status.value,
    )
    return event
