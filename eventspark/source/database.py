"""Event source backed by the application's own database through SQLModel."""

import logging
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from typing import Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from eventspark.core.errors import DatabaseError, NotFoundError, ValidationError
from eventspark.core.result import Err, Ok
from eventspark.models import Event
from eventspark.models.event import (
    check_cross_field_rules,
    merged_values,
    validate_event_create,
    validate_event_update,
)
from eventspark.source.base import missing_id_error

logger = logging.getLogger(__name__)


class DatabaseEventSource:
    """Event CRUD over a SQLModel session."""

    def __init__(self, session: Session):
        self.session = session

    def list(self):
        now = datetime.now(UTC)
        statement = (
            select(Event)
            .where(Event.start_date >= now)
            .order_by(Event.start_date)
        )
        return self._fetch_all(statement, "Failed to fetch events")

    def list_all(self):
        statement = select(Event).order_by(Event.start_date)
        return self._fetch_all(statement, "Failed to fetch events")

    def get_by_id(self, event_id: str):
        if not event_id:
            return Err(missing_id_error())
        try:
            event = self.session.get(Event, event_id)
        except SQLAlchemyError as e:
            logger.error(f"Error fetching event {event_id}: {e}")
            return Err(DatabaseError("Failed to fetch event", details=str(e)))
        if event is None:
            return Err(NotFoundError("Event", event_id))
        return Ok(event)

    def get_by_ids(self, event_ids: Iterable[str]):
        ids = list(dict.fromkeys(event_ids))
        if not ids:
            return Ok([])
        statement = (
            select(Event)
            .where(Event.id.in_(ids))
            .order_by(Event.start_date)
        )
        return self._fetch_all(statement, "Failed to fetch events")

    def create(self, data: Mapping[str, Any]):
        try:
            event_in = validate_event_create(data)
        except ValidationError as e:
            return Err(e)

        values = event_in.model_dump()
        if values["category"] is not None:
            values["category"] = values["category"].value
        event = Event(**values)
        return self._save(event, "Failed to create event")

    def update(self, event_id: str, data: Mapping[str, Any]):
        if not event_id:
            return Err(missing_id_error())
        try:
            changes = validate_event_update(data)
        except ValidationError as e:
            return Err(e)

        found = self.get_by_id(event_id)
        if not found.ok:
            return found
        event = found.value

        values = merged_values(event, changes)
        errors = check_cross_field_rules(values)
        if errors:
            return Err(ValidationError(next(iter(errors.values())), errors=errors))

        for key, value in values.items():
            setattr(event, key, value)
        event.updated_at = datetime.now(UTC)
        return self._save(event, "Failed to update event")

    def delete(self, event_id: str):
        found = self.get_by_id(event_id)
        if not found.ok:
            return found
        try:
            self.session.delete(found.value)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Error deleting event {event_id}: {e}")
            return Err(DatabaseError("Failed to delete event", details=str(e)))
        logger.info(f"Deleted event {event_id}")
        return Ok(True)

    def _fetch_all(self, statement, message: str):
        try:
            return Ok(list(self.session.exec(statement).all()))
        except SQLAlchemyError as e:
            logger.error(f"{message}: {e}")
            return Err(DatabaseError(message, details=str(e)))

    def _save(self, event: Event, message: str):
        try:
            self.session.add(event)
            self.session.commit()
            self.session.refresh(event)
        except IntegrityError as e:
            self.session.rollback()
            logger.warning(f"{message}: {e}")
            return Err(ValidationError("An event with this information already exists"))
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"{message}: {e}")
            return Err(DatabaseError(message, details=str(e)))
        logger.info(f"Saved event {event.id}: {event.title}")
        return Ok(event)
