from __future__ import annotations

import uuid

from sqlalchemy import delete, exists, func, select
from sqlalchemy.exc import IntegrityError

from app.core.error_codes import ErrorCode
from app.core.exceptions import ConflictError
from app.models import EventParticipant
from app.repositories.base import Repository, storage_errors


class ParticipantRepository(Repository):
    """Membership store: a participant row exists iff the user is a member."""

    @storage_errors
    def exists(self, event_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        return bool(
            self.db.scalar(
                select(
                    exists().where(
                        EventParticipant.event_id == event_id,
                        EventParticipant.user_id == user_id,
                    )
                )
            )
        )

    @storage_errors
    def count(self, event_id: uuid.UUID) -> int:
        return int(
            self.db.scalar(
                select(func.count(EventParticipant.id)).where(
                    EventParticipant.event_id == event_id
                )
            )
            or 0
        )

    @storage_errors
    def add(self, event_id: uuid.UUID, user_id: uuid.UUID) -> EventParticipant:
        participant = EventParticipant(event_id=event_id, user_id=user_id)
        self.db.add(participant)
        try:
            self.db.flush()
        except IntegrityError as exc:
            # The transaction is unusable after a constraint violation.
            self.db.rollback()
            raise ConflictError(
                ErrorCode.ALREADY_JOINED.value, "already joined this event"
            ) from exc
        return participant

    @storage_errors
    def remove(self, event_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        result = self.db.execute(
            delete(EventParticipant).where(
                EventParticipant.event_id == event_id,
                EventParticipant.user_id == user_id,
            )
        )
        return bool(result.rowcount)
