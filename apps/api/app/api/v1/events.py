from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.errors import http_error_from_service
from app.api.v1.schemas.events import (
    EventCreate,
    EventOut,
    EventUpdate,
    FeedEventOut,
    FeedOut,
    MembershipOut,
    MembershipStatus,
    OptionalAwareDatetime,
    PageMetaOut,
    SwipeIn,
    SwipeOut,
)
from app.auth.deps import CurrentActor
from app.core.exceptions import ServiceError
from app.db import get_db
from app.models import Event
from app.pagination import PageParams
from app.repositories import FeedFilter
from app.services import events_service, feed_service, membership_service, swipe_service

router = APIRouter(prefix="/events", tags=["events"])

DBSession = Annotated[Session, Depends(get_db)]


def event_out(event: Event, participant_count: int | None = None) -> EventOut:
    out = EventOut.model_validate(event)
    return out.model_copy(update={"participant_count": participant_count})


@router.get("", response_model=FeedOut)
def list_feed(
    db: DBSession,
    lat: float | None = None,
    lng: float | None = None,
    max_distance_km: float | None = None,
    sport_type: str | None = None,
    date_from: OptionalAwareDatetime = None,
    date_to: OptionalAwareDatetime = None,
    page: int | None = Query(default=None),
    limit: int | None = Query(default=None),
):
    try:
        params = PageParams.from_query(page, limit)
        result = feed_service.list_feed(
            db,
            FeedFilter(
                lat=lat,
                lng=lng,
                max_distance_km=max_distance_km,
                sport_type=sport_type,
                date_from=date_from,
                date_to=date_to,
            ),
            params,
        )
    except ServiceError as err:
        raise http_error_from_service(err) from err

    items = [
        FeedEventOut.model_validate(item.event).model_copy(
            update={"distance_km": item.distance_km}
        )
        for item in result.items
    ]
    return FeedOut(items=items, meta=PageMetaOut.model_validate(result.meta))


@router.get("/{event_id}", response_model=EventOut)
def get_event(event_id: uuid.UUID, db: DBSession):
    try:
        event, participant_count = events_service.get_event(db, event_id)
    except ServiceError as err:
        raise http_error_from_service(err) from err
    return event_out(event, participant_count)


@router.post("", response_model=EventOut, status_code=201)
def create_event(payload: EventCreate, db: DBSession, actor: CurrentActor):
    try:
        event = events_service.create_event(db, actor, payload)
    except ServiceError as err:
        raise http_error_from_service(err) from err
    return event_out(event, 0)


@router.patch("/{event_id}", response_model=EventOut)
def update_event(event_id: uuid.UUID, payload: EventUpdate, db: DBSession, actor: CurrentActor):
    try:
        event = events_service.update_event(db, actor, event_id, payload)
    except ServiceError as err:
        raise http_error_from_service(err) from err
    return event_out(event)


@router.delete("/{event_id}", response_model=EventOut)
def cancel_event(event_id: uuid.UUID, db: DBSession, actor: CurrentActor):
    try:
        event = events_service.cancel_event(db, actor, event_id)
    except ServiceError as err:
        raise http_error_from_service(err) from err
    return event_out(event)


@router.post("/{event_id}/join", response_model=MembershipOut)
def join_event(event_id: uuid.UUID, db: DBSession, actor: CurrentActor):
    try:
        event = membership_service.join_event(db, actor, event_id)
    except ServiceError as err:
        raise http_error_from_service(err) from err
    return MembershipOut(
        status=MembershipStatus.JOINED,
        event_id=event.id,
        user_id=actor.user_id,
        event_status=event.status,
    )


@router.post("/{event_id}/leave", response_model=MembershipOut)
def leave_event(event_id: uuid.UUID, db: DBSession, actor: CurrentActor):
    try:
        event = membership_service.leave_event(db, actor, event_id)
    except ServiceError as err:
        raise http_error_from_service(err) from err
    return MembershipOut(
        status=MembershipStatus.LEFT,
        event_id=event.id,
        user_id=actor.user_id,
        event_status=event.status,
    )


@router.post("/{event_id}/swipe", response_model=SwipeOut)
def swipe_event(event_id: uuid.UUID, payload: SwipeIn, db: DBSession, actor: CurrentActor):
    try:
        swipe = swipe_service.record_swipe(db, actor, event_id, payload.action)
    except ServiceError as err:
        raise http_error_from_service(err) from err
    return SwipeOut.model_validate(swipe)
