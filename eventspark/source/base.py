"""The event source boundary.

Every operation returns a Result and never raises to the caller:

    list()            upcoming events (start_date >= now), soonest first
    list_all()        every event, soonest first (admin)
    get_by_id(id)     one event, or NotFoundError
    get_by_ids(ids)   matching events; unknown ids are silently left out
    create(data)      validated new event, or ValidationError
    update(id, data)  partial edit, or NotFoundError / ValidationError
    delete(id)        True, or NotFoundError

Backend and network failures come back as DatabaseError.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Protocol

from eventspark.core.errors import DatabaseError, NotFoundError, ValidationError
from eventspark.core.result import Result
from eventspark.models import Event
from eventspark.models.event import utc


class EventSource(Protocol):
    def list(self) -> Result[list[Event], DatabaseError]: ...

    def list_all(self) -> Result[list[Event], DatabaseError]: ...

    def get_by_id(self, event_id: str) -> Result[Event, NotFoundError | ValidationError | DatabaseError]: ...

    def get_by_ids(self, event_ids: Iterable[str]) -> Result[list[Event], DatabaseError]: ...

    def create(self, data: Mapping[str, Any]) -> Result[Event, ValidationError | DatabaseError]: ...

    def update(
        self, event_id: str, data: Mapping[str, Any]
    ) -> Result[Event, NotFoundError | ValidationError | DatabaseError]: ...

    def delete(self, event_id: str) -> Result[bool, NotFoundError | ValidationError | DatabaseError]: ...


def by_start_date(events: Iterable[Event]) -> list[Event]:
    return sorted(events, key=lambda event: utc(event.start_date))


def missing_id_error() -> ValidationError:
    return ValidationError("Event ID is required", field="id")
