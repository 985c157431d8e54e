from app.repositories.base import commit
from app.repositories.event_repository import EventRepository, FeedFilter
from app.repositories.participant_repository import ParticipantRepository
from app.repositories.swipe_repository import SwipeRepository

__all__ = [
    "commit",
    "EventRepository",
    "FeedFilter",
    "ParticipantRepository",
    "SwipeRepository",
]
