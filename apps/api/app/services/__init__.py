from app.services.events_service import (
    admin_update_status,
    cancel_event,
    create_event,
    get_event,
    update_event,
)
from app.services.feed_service import FeedItem, FeedPage, list_all_for_admin, list_feed
from app.services.membership_service import join_event, leave_event
from app.services.permissions import Actor, ActorRole, can_manage, require_manage_permission
from app.services.swipe_service import record_swipe

__all__ = [
    "create_event",
    "get_event",
    "update_event",
    "cancel_event",
    "admin_update_status",
    "join_event",
    "leave_event",
    "record_swipe",
    "list_feed",
    "list_all_for_admin",
    "FeedItem",
    "FeedPage",
    "Actor",
    "ActorRole",
    "can_manage",
    "require_manage_permission",
]
