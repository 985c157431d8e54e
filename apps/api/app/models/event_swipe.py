from __future__ import annotations

import uuid
from enum import Enum

import sqlalchemy as sa
from sqlalchemy import ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class SwipeAction(str, Enum):
    LIKE = "like"
    SKIP = "skip"


class EventSwipe(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Latest like/skip decision of one user on one event."""

    __tablename__ = "event_swipes"
    __table_args__ = (UniqueConstraint("event_id", "user_id", name="uq_event_swipe_event_user"),)

    event_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("events.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)

    action: Mapped[SwipeAction] = mapped_column(
        sa.Enum(
            SwipeAction,
            name="swipe_action",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
    )
