from app.api.v1.schemas.events import (
    EventCreate,
    EventListOut,
    EventOut,
    EventStatusIn,
    EventUpdate,
    FeedEventOut,
    FeedOut,
    MembershipOut,
    MembershipStatus,
    PageMetaOut,
    SwipeIn,
    SwipeOut,
)

__all__ = [
    "EventCreate",
    "EventUpdate",
    "EventOut",
    "EventListOut",
    "EventStatusIn",
    "FeedEventOut",
    "FeedOut",
    "MembershipOut",
    "MembershipStatus",
    "PageMetaOut",
    "SwipeIn",
    "SwipeOut",
]
