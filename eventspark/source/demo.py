"""Demo event source kept in key/value storage.

Used when no database or hosted backend is available, e.g. for end-to-end
runs. The first read seeds three sample events relative to the current
time; after that the list lives as JSON under ``demo_events_storage``.
Unreadable stored data is replaced with a fresh seed.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime, timedelta
from typing import Any

from eventspark.core.errors import DatabaseError, NotFoundError, StorageError, ValidationError
from eventspark.core.result import Err, Ok
from eventspark.deck.store import Storage
from eventspark.models import Event
from eventspark.models.event import (
    check_cross_field_rules,
    merged_values,
    new_event_id,
    utc,
    validate_event_create,
    validate_event_update,
)
from eventspark.source.base import by_start_date, missing_id_error

logger = logging.getLogger(__name__)

DEMO_EVENTS_KEY = "demo_events_storage"


def seed_events(now: datetime | None = None) -> list[Event]:
    now = now or datetime.now(UTC)
    return [
        Event(
            id="demo-event-001",
            title="Community Market Day",
            description="Join us for a local market featuring fresh produce, handmade crafts, and live entertainment.",
            image_url="https://picsum.photos/seed/market/800/600",
            start_date=now + timedelta(days=1),
            location="Town Square, Beechworth VIC 3747",
            venue_name="Beechworth Town Square",
            category="market",
            is_free=True,
            created_at=now,
            updated_at=now,
        ),
        Event(
            id="demo-event-002",
            title="Live Jazz Night",
            description="An evening of smooth jazz with local and touring musicians.",
            image_url="https://picsum.photos/seed/jazz/800/600",
            start_date=now + timedelta(days=7),
            location="45 Ford Street, Beechworth VIC 3747",
            venue_name="The Bridge Hotel",
            category="music",
            ticket_url="https://example.com/jazz-night",
            is_free=False,
            price="$25",
            created_at=now,
            updated_at=now,
        ),
        Event(
            id="demo-event-003",
            title="Art Workshop: Watercolors",
            description="Learn watercolor painting techniques in this beginner-friendly workshop.",
            image_url="https://picsum.photos/seed/art/800/600",
            start_date=now + timedelta(days=30),
            location="12 Camp Street, Beechworth VIC 3747",
            venue_name="Beechworth Arts Center",
            category="workshop",
            ticket_url="https://example.com/workshop",
            is_free=False,
            price="$45",
            created_at=now,
            updated_at=now,
        ),
    ]


class DemoEventSource:
    """Event CRUD over a JSON list in storage."""

    def __init__(self, storage: Storage):
        self.storage = storage

    def list(self):
        now = datetime.now(UTC)
        return Ok(by_start_date(e for e in self._load() if utc(e.start_date) >= now))

    def list_all(self):
        return Ok(by_start_date(self._load()))

    def get_by_id(self, event_id: str):
        if not event_id:
            return Err(missing_id_error())
        for event in self._load():
            if event.id == event_id:
                return Ok(event)
        return Err(NotFoundError("Event", event_id))

    def get_by_ids(self, event_ids: Iterable[str]):
        wanted = set(event_ids)
        if not wanted:
            return Ok([])
        return Ok(by_start_date(e for e in self._load() if e.id in wanted))

    def create(self, data: Mapping[str, Any]):
        try:
            event_in = validate_event_create(data)
        except ValidationError as e:
            return Err(e)

        values = event_in.model_dump()
        if values["category"] is not None:
            values["category"] = values["category"].value
        event = Event(id=new_event_id(), **values)

        events = self._load()
        events.append(event)
        return self._save(events, event)

    def update(self, event_id: str, data: Mapping[str, Any]):
        if not event_id:
            return Err(missing_id_error())
        try:
            changes = validate_event_update(data)
        except ValidationError as e:
            return Err(e)

        events = self._load()
        for index, event in enumerate(events):
            if event.id == event_id:
                break
        else:
            return Err(NotFoundError("Event", event_id))

        values = merged_values(event, changes)
        errors = check_cross_field_rules(values)
        if errors:
            return Err(ValidationError(next(iter(errors.values())), errors=errors))

        updated = Event(
            id=event.id,
            created_at=event.created_at,
            updated_at=datetime.now(UTC),
            **values,
        )
        events[index] = updated
        return self._save(events, updated)

    def delete(self, event_id: str):
        if not event_id:
            return Err(missing_id_error())
        events = self._load()
        remaining = [e for e in events if e.id != event_id]
        if len(remaining) == len(events):
            return Err(NotFoundError("Event", event_id))
        return self._save(remaining, True)

    def _load(self) -> list[Event]:
        raw = self.storage.get_item(DEMO_EVENTS_KEY)
        if raw:
            try:
                return [Event.from_dict(row) for row in json.loads(raw)]
            except (TypeError, ValueError, AttributeError) as e:
                logger.warning(f"Resetting unreadable demo events: {e}")
        events = seed_events()
        try:
            self._store(events)
        except StorageError as e:
            logger.warning(f"Could not persist demo seed, serving it unsaved: {e}")
        return events

    def _save(self, events: list[Event], value):
        try:
            self._store(events)
        except StorageError as e:
            logger.error(f"Failed to save demo events: {e}")
            return Err(DatabaseError("Failed to save event", details=str(e)))
        return Ok(value)

    def _store(self, events: list[Event]) -> None:
        self.storage.set_item(DEMO_EVENTS_KEY, json.dumps([e.to_dict() for e in events]))
