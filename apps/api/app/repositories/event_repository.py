from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import Select, func, select

from app.geo import haversine_km_sql
from app.models import Event, EventParticipant, EventStatus
from app.pagination import PageParams
from app.repositories.base import Repository, storage_errors


@dataclass(frozen=True)
class FeedFilter:
    lat: float | None = None
    lng: float | None = None
    max_distance_km: float | None = None
    sport_type: str | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None

    @property
    def has_origin(self) -> bool:
        return self.lat is not None and self.lng is not None


class EventRepository(Repository):
    @storage_errors
    def add(self, event: Event) -> Event:
        self.db.add(event)
        self.db.flush()
        return event

    @storage_errors
    def get_for_update(self, event_id: uuid.UUID) -> Event | None:
        """
        Load the event row and hold its lock until the transaction ends. On
        SQLite the clause is ignored and the BEGIN IMMEDIATE issued by app.db
        provides the same exclusion.
        """
        return self.db.scalar(
            select(Event)
            .where(Event.id == event_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )

    @storage_errors
    def get_with_participant_count(self, event_id: uuid.UUID) -> tuple[Event, int] | None:
        count = (
            select(func.count(EventParticipant.id))
            .where(EventParticipant.event_id == Event.id)
            .correlate(Event)
            .scalar_subquery()
        )
        row = self.db.execute(select(Event, count).where(Event.id == event_id)).first()
        if row is None:
            return None
        return row[0], int(row[1] or 0)

    @storage_errors
    def save(self, event: Event) -> Event:
        self.db.add(event)
        self.db.flush()
        return event

    @storage_errors
    def list_feed(
        self, feed_filter: FeedFilter, now: datetime, page: PageParams
    ) -> tuple[list[tuple[Event, float | None]], int]:
        distance = None
        if feed_filter.has_origin:
            distance = haversine_km_sql(
                feed_filter.lat, feed_filter.lng, Event.latitude, Event.longitude
            ).label("distance_km")

        conditions: list[Any] = [
            Event.status == EventStatus.OPEN,
            Event.scheduled_at > now,
        ]
        if distance is not None and feed_filter.max_distance_km is not None:
            conditions.append(distance.element <= feed_filter.max_distance_km)
        if feed_filter.sport_type:
            conditions.append(Event.sport_type == feed_filter.sport_type)
        if feed_filter.date_from is not None:
            conditions.append(Event.scheduled_at >= feed_filter.date_from)
        if feed_filter.date_to is not None:
            conditions.append(Event.scheduled_at <= feed_filter.date_to)

        total = int(
            self.db.scalar(select(func.count()).select_from(Event).where(*conditions)) or 0
        )

        stmt: Select
        if distance is not None:
            stmt = (
                select(Event, distance)
                .where(*conditions)
                .order_by(distance.element.asc(), Event.scheduled_at.asc(), Event.id.asc())
            )
        else:
            stmt = select(Event).where(*conditions).order_by(
                Event.scheduled_at.asc(), Event.id.asc()
            )
        stmt = stmt.offset(page.offset).limit(page.limit)

        if distance is not None:
            rows = [(event, float(km)) for event, km in self.db.execute(stmt).all()]
        else:
            rows = [(event, None) for event in self.db.scalars(stmt).all()]
        return rows, total

    @storage_errors
    def list_all(self, page: PageParams) -> tuple[list[Event], int]:
        total = int(self.db.scalar(select(func.count()).select_from(Event)) or 0)
        events = self.db.scalars(
            select(Event)
            .order_by(Event.scheduled_at.desc(), Event.id.asc())
            .offset(page.offset)
            .limit(page.limit)
        ).all()
        return list(events), total
