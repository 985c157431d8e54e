from app.models.base import Base
from app.models.event import Event, EventStatus
from app.models.event_participant import EventParticipant
from app.models.event_swipe import EventSwipe, SwipeAction

__all__ = ["Base", "Event", "EventStatus", "EventParticipant", "EventSwipe", "SwipeAction"]
