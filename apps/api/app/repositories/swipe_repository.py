from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError

from app.core.error_codes import ErrorCode
from app.core.exceptions import NotFoundError
from app.models import EventSwipe, SwipeAction
from app.models.base import utcnow
from app.repositories.base import Repository, storage_errors


class SwipeRepository(Repository):
    @storage_errors
    def find(self, event_id: uuid.UUID, user_id: uuid.UUID) -> EventSwipe | None:
        return self.db.scalar(
            select(EventSwipe)
            .where(EventSwipe.event_id == event_id, EventSwipe.user_id == user_id)
            .execution_options(populate_existing=True)
        )

    @storage_errors
    def upsert(
        self, event_id: uuid.UUID, user_id: uuid.UUID, action: SwipeAction
    ) -> EventSwipe | None:
        """
        Insert the (event, user) swipe or overwrite its action in one statement.
        Repeating the current action matches the conflict but updates nothing.
        """
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            insert = postgresql.insert
        elif dialect == "sqlite":
            insert = sqlite.insert
        else:
            raise NotImplementedError(f"swipe upsert is not supported on {dialect}")

        now = utcnow()
        stmt = insert(EventSwipe).values(
            id=uuid.uuid4(),
            event_id=event_id,
            user_id=user_id,
            action=action,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["event_id", "user_id"],
            set_={"action": stmt.excluded.action, "updated_at": stmt.excluded.updated_at},
            where=EventSwipe.action != stmt.excluded.action,
        )

        try:
            self.db.execute(stmt)
        except IntegrityError as exc:
            # Only the event foreign key can fail here; the unique key is handled above.
            self.db.rollback()
            raise NotFoundError(ErrorCode.EVENT_NOT_FOUND.value, "event not found") from exc

        return self.find(event_id, user_id)
