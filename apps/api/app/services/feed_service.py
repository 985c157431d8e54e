"""Discovery feed and the admin event listing."""

from __future__ import annotations

from dataclasses import dataclass, replace

from sqlalchemy.orm import Session

from app.core.error_codes import ErrorCode
from app.core.exceptions import ValidationError
from app.models import Event
from app.models.base import ensure_utc, utcnow
from app.pagination import PageMeta, PageParams
from app.repositories import EventRepository, FeedFilter


@dataclass(frozen=True)
class FeedItem:
    event: Event
    distance_km: float | None


@dataclass(frozen=True)
class FeedPage:
    items: list[FeedItem]
    meta: PageMeta


def _invalid(message: str) -> ValidationError:
    return ValidationError(ErrorCode.INVALID_FIELD.value, message)


def _normalize(feed_filter: FeedFilter) -> FeedFilter:
    if feed_filter.lat is not None and not -90 <= feed_filter.lat <= 90:
        raise _invalid("lat must be between -90 and 90")
    if feed_filter.lng is not None and not -180 <= feed_filter.lng <= 180:
        raise _invalid("lng must be between -180 and 180")
    if feed_filter.max_distance_km is not None and feed_filter.max_distance_km < 0:
        raise _invalid("max_distance_km must be >= 0")

    return replace(
        feed_filter,
        sport_type=feed_filter.sport_type or None,
        date_from=ensure_utc(feed_filter.date_from) if feed_filter.date_from else None,
        date_to=ensure_utc(feed_filter.date_to) if feed_filter.date_to else None,
    )


def list_feed(db: Session, feed_filter: FeedFilter, page: PageParams) -> FeedPage:
    """
    Open, upcoming events matching every supplied filter. With an origin
    point the results carry distance_km and are sorted nearest first, then
    by scheduled time; otherwise by scheduled time alone.
    """
    feed_filter = _normalize(feed_filter)
    rows, total = EventRepository(db).list_feed(feed_filter, utcnow(), page)
    return FeedPage(
        items=[FeedItem(event=event, distance_km=distance) for event, distance in rows],
        meta=page.meta(total),
    )


def list_all_for_admin(db: Session, page: PageParams) -> tuple[list[Event], PageMeta]:
    events, total = EventRepository(db).list_all(page)
    return events, page.meta(total)
