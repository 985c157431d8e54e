from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy.orm import Session

from app.core.error_codes import ErrorCode
from app.core.exceptions import ServiceError, ValidationError
from app.models import EventSwipe, SwipeAction
from app.repositories import SwipeRepository, commit
from app.services.permissions import Actor

logger = structlog.get_logger()


def record_swipe(db: Session, actor: Actor, event_id: Any, action: SwipeAction | str) -> EventSwipe:
    """
    Store the actor's latest like/skip on an event. The event's status is not
    consulted: swipes on full or cancelled events are kept as interest signals.
    """
    try:
        action = SwipeAction(action)
    except ValueError:
        raise ValidationError(
            ErrorCode.INVALID_FIELD.value, "action must be one of like, skip"
        ) from None

    try:
        swipe = SwipeRepository(db).upsert(event_id, actor.user_id, action)
        commit(db)
    except ServiceError:
        db.rollback()
        raise

    logger.info(
        "swipe_recorded", event_id=str(event_id), user_id=str(actor.user_id), action=action.value
    )
    return swipe
