from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated
from uuid import UUID

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator

from app.models.event import EventStatus
from app.models.event_swipe import SwipeAction


def _ensure_tzaware(value: datetime | None) -> datetime | None:
    if value is None:
        return value
    if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
        raise ValueError("datetime must be timezone-aware")
    return value


# Query parameters go through the same offset check as request bodies
OptionalAwareDatetime = Annotated[datetime | None, AfterValidator(_ensure_tzaware)]


class SchemaBase(BaseModel):
    model_config = ConfigDict(from_attributes=True, extra="ignore")


class TZAwareMixin(BaseModel):
    @field_validator("scheduled_at", mode="after", check_fields=False)
    @classmethod
    def _validate_tzaware(cls, value: datetime | None) -> datetime | None:
        return _ensure_tzaware(value)


# Range rules (coordinates, capacity, future time) are enforced by the
# services so that every caller gets the same ValidationError.
class EventCreate(TZAwareMixin, SchemaBase):
    title: str = Field(min_length=1, max_length=120)
    sport_type: str = Field(min_length=1, max_length=50)
    scheduled_at: datetime
    location_name: str | None = Field(default=None, max_length=160)
    address: str | None = None
    latitude: float
    longitude: float
    capacity: int
    description: str | None = None


class EventUpdate(TZAwareMixin, SchemaBase):
    """Partial update: only fields the caller actually sent are applied."""

    title: str | None = Field(default=None, min_length=1, max_length=120)
    sport_type: str | None = Field(default=None, min_length=1, max_length=50)
    scheduled_at: datetime | None = None
    location_name: str | None = Field(default=None, max_length=160)
    address: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    capacity: int | None = None
    description: str | None = None


class EventOut(SchemaBase):
    id: UUID
    creator_id: UUID
    title: str
    sport_type: str
    scheduled_at: datetime
    location_name: str | None = None
    address: str | None = None
    latitude: float
    longitude: float
    capacity: int
    description: str | None = None
    status: EventStatus
    participant_count: int | None = None
    created_at: datetime
    updated_at: datetime
    cancelled_at: datetime | None = None


class FeedEventOut(EventOut):
    distance_km: float | None = None


class PageMetaOut(SchemaBase):
    total: int = Field(ge=0)
    page: int = Field(ge=1)
    limit: int = Field(ge=1)
    page_count: int = Field(ge=0)


class FeedOut(SchemaBase):
    items: list[FeedEventOut]
    meta: PageMetaOut


class EventListOut(SchemaBase):
    items: list[EventOut]
    meta: PageMetaOut


class MembershipStatus(str, Enum):
    JOINED = "joined"
    LEFT = "left"


class MembershipOut(SchemaBase):
    status: MembershipStatus
    event_id: UUID
    user_id: UUID
    event_status: EventStatus


class SwipeIn(SchemaBase):
    action: SwipeAction


class SwipeOut(SchemaBase):
    event_id: UUID
    user_id: UUID
    action: SwipeAction
    updated_at: datetime


class EventStatusIn(SchemaBase):
    # Checked by the service so an unknown value is a ValidationError there
    status: str
