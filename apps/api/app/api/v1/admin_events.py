from __future__ import annotations

import uuid
from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.errors import http_error_from_service
from app.api.v1.events import event_out
from app.api.v1.schemas.events import EventListOut, EventOut, EventStatusIn, PageMetaOut
from app.auth.deps import AdminActor, require_admin
from app.core.exceptions import ServiceError
from app.db import get_db
from app.pagination import PageParams
from app.services import events_service, feed_service

logger = structlog.get_logger()

router = APIRouter(
    prefix="/admin/events",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)

DBSession = Annotated[Session, Depends(get_db)]


@router.get("", response_model=EventListOut)
def list_all_events(
    db: DBSession,
    page: int | None = Query(default=None),
    limit: int | None = Query(default=None),
):
    try:
        events, meta = feed_service.list_all_for_admin(db, PageParams.from_query(page, limit))
    except ServiceError as err:
        raise http_error_from_service(err) from err
    return EventListOut(
        items=[event_out(event) for event in events],
        meta=PageMetaOut.model_validate(meta),
    )


@router.put("/{event_id}/status", response_model=EventOut)
def update_event_status(
    event_id: uuid.UUID, payload: EventStatusIn, db: DBSession, admin: AdminActor
):
    try:
        event = events_service.admin_update_status(db, event_id, payload.status)
    except ServiceError as err:
        raise http_error_from_service(err) from err
    logger.info("admin_status_override", admin_id=str(admin.user_id), event_id=str(event.id))
    return event_out(event)
