"""Event model and the input schemas used to create and edit events.

This module defines the Event table, the closed set of event categories,
and the EventCreate / EventUpdate schemas that validate admin input before
it reaches an event source. Validation failures are reported as a mapping
of field name to message so forms can show each message beside its field.
"""

from collections.abc import Mapping
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from urllib.parse import urlparse
from uuid import uuid4

from pydantic import ValidationError as PydanticValidationError
from pydantic import field_validator
from sqlalchemy import Column, DateTime
from sqlmodel import Field, SQLModel

from eventspark.core.errors import ValidationError


class EventCategory(str, Enum):
    MUSIC = "music"
    FOOD = "food"
    MARKET = "market"
    ART = "art"
    COMMUNITY = "community"
    SPORT = "sport"
    WORKSHOP = "workshop"
    FESTIVAL = "festival"
    OTHER = "other"


CATEGORY_LABELS = {
    EventCategory.MUSIC: "Music",
    EventCategory.FOOD: "Food & Drink",
    EventCategory.MARKET: "Market",
    EventCategory.ART: "Art & Culture",
    EventCategory.COMMUNITY: "Community",
    EventCategory.SPORT: "Sport",
    EventCategory.WORKSHOP: "Workshop",
    EventCategory.FESTIVAL: "Festival",
    EventCategory.OTHER: "Other",
}


def utc(value: datetime) -> datetime:
    """Return an aware UTC datetime; naive values are taken to be UTC.

    SQLite hands back naive datetimes even for timezone-aware columns.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def new_event_id() -> str:
    return str(uuid4())


class Event(SQLModel, table=True):
    """A local event shown on the discover deck.

    Events are created, edited and deleted only through an event source.
    While a visitor swipes through a deck, the events in it are treated as
    immutable snapshots.

    Attributes:
        id: Opaque unique identifier (UUID text for events created here).
        title: Display title.
        description: Long-form description.
        image_url: Card background image.
        start_date: When the event starts. Required.
        end_date: When the event ends; never earlier than start_date.
        location: Free-text address.
        venue_name: Name of the venue.
        category: One of EventCategory, or None.
        ticket_url: Where to buy tickets or read more.
        is_free: Whether entry is free.
        price: Price text, required for paid events.
        created_at: When the event was created.
        updated_at: When the event was last edited.
    """
    id: str = Field(default_factory=new_event_id, primary_key=True)
    title: str = Field(max_length=200)
    description: str | None = None
    image_url: str | None = None
    start_date: datetime = Field(
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True)
    )
    end_date: datetime | None = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )
    location: str | None = None
    venue_name: str | None = None
    category: str | None = None
    ticket_url: str | None = None
    is_free: bool = Field(default=True)
    price: str | None = None
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )

    @property
    def category_label(self) -> str | None:
        if not self.category:
            return None
        return CATEGORY_LABELS.get(EventCategory(self.category), self.category)

    def to_dict(self) -> dict[str, Any]:
        """Serialise with ISO-8601 UTC timestamps, the shape the JSON API returns."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "image_url": self.image_url,
            "start_date": utc(self.start_date).isoformat(),
            "end_date": utc(self.end_date).isoformat() if self.end_date else None,
            "location": self.location,
            "venue_name": self.venue_name,
            "category": self.category,
            "ticket_url": self.ticket_url,
            "is_free": self.is_free,
            "price": self.price,
            "created_at": utc(self.created_at).isoformat(),
            "updated_at": utc(self.updated_at).isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Event":
        """Build an Event from a JSON row (REST backend or demo storage)."""
        values = {key: value for key, value in data.items() if key in cls.model_fields}
        for key in ("start_date", "end_date", "created_at", "updated_at"):
            if isinstance(values.get(key), str):
                values[key] = utc(datetime.fromisoformat(values[key].replace("Z", "+00:00")))
        return cls(**values)


# Field rules shared by EventCreate and EventUpdate.
_MAX_LENGTHS = {
    "title": (200, "Title must be 200 characters or less"),
    "description": (5000, "Description must be 5000 characters or less"),
    "location": (500, "Location must be 500 characters or less"),
    "venue_name": (200, "Venue name must be 200 characters or less"),
    "price": (100, "Price must be 100 characters or less"),
}
_URL_MESSAGES = {
    "image_url": "Invalid image URL",
    "ticket_url": "Invalid ticket URL",
}


def _is_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


class _EventFields(SQLModel):
    """Field-level validation for event input."""

    @field_validator(
        "description", "image_url", "end_date", "location", "venue_name",
        "category", "ticket_url", "price",
        mode="before", check_fields=False,
    )
    @classmethod
    def blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("title", mode="before", check_fields=False)
    @classmethod
    def title_required(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValueError("Title is required")
        return value.strip() if isinstance(value, str) else value

    @field_validator(
        "title", "description", "location", "venue_name", "price", check_fields=False
    )
    @classmethod
    def within_max_length(cls, value, info):
        limit, message = _MAX_LENGTHS[info.field_name]
        if value is not None and len(value) > limit:
            raise ValueError(message)
        return value

    @field_validator("start_date", mode="before", check_fields=False)
    @classmethod
    def start_required(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValueError("Start date is required")
        return value

    @field_validator("image_url", "ticket_url", check_fields=False)
    @classmethod
    def url_shaped(cls, value, info):
        if value is not None and not _is_url(value):
            raise ValueError(_URL_MESSAGES[info.field_name])
        return value

    @field_validator("start_date", "end_date", check_fields=False)
    @classmethod
    def as_utc(cls, value):
        return utc(value) if value is not None else value


class EventCreate(_EventFields):
    """Input for creating an event."""
    title: str
    description: str | None = None
    image_url: str | None = None
    start_date: datetime
    end_date: datetime | None = None
    location: str | None = None
    venue_name: str | None = None
    category: EventCategory | None = None
    ticket_url: str | None = None
    is_free: bool = True
    price: str | None = None


class EventUpdate(_EventFields):
    """Partial input for editing an event; unset fields are left unchanged."""
    title: str | None = None
    description: str | None = None
    image_url: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    location: str | None = None
    venue_name: str | None = None
    category: EventCategory | None = None
    ticket_url: str | None = None
    is_free: bool | None = None
    price: str | None = None


_MISSING_MESSAGES = {
    "title": "Title is required",
    "start_date": "Start date is required",
}
_TYPE_MESSAGES = {
    "start_date": "Invalid start date",
    "end_date": "Invalid end date",
    "category": "Invalid category",
}


def _field_errors(exc: PydanticValidationError) -> dict[str, str]:
    errors: dict[str, str] = {}
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"]) or "__root__"
        if field in errors:
            continue
        ctx = error.get("ctx") or {}
        if error["type"] == "value_error" and "error" in ctx:
            message = str(ctx["error"])
        elif error["type"] == "missing":
            message = _MISSING_MESSAGES.get(field, f"{field} is required")
        else:
            message = _TYPE_MESSAGES.get(field, error["msg"])
        errors[field] = message
    return errors


def check_cross_field_rules(values: Mapping[str, Any]) -> dict[str, str]:
    """Rules spanning more than one field, keyed by the field they are reported on."""
    errors = {}
    if values.get("is_free") is False and not values.get("price"):
        errors["price"] = "Price is required for paid events"
    start, end = values.get("start_date"), values.get("end_date")
    if start is not None and end is not None and utc(end) < utc(start):
        errors["end_date"] = "End date must be after start date"
    return errors


def _raise_for(errors: dict[str, str]):
    raise ValidationError(next(iter(errors.values())), errors=errors)


def validate_event_create(data: Mapping[str, Any]) -> EventCreate:
    """Validate new-event input, raising ValidationError with per-field messages."""
    try:
        event_in = EventCreate.model_validate(dict(data))
    except PydanticValidationError as e:
        _raise_for(_field_errors(e))
    errors = check_cross_field_rules(event_in.model_dump())
    if errors:
        _raise_for(errors)
    return event_in


def validate_event_update(data: Mapping[str, Any]) -> EventUpdate:
    """Validate partial input field by field.

    Cross-field rules are checked by the event source once the partial input
    has been merged with the stored event.
    """
    try:
        return EventUpdate.model_validate(dict(data))
    except PydanticValidationError as e:
        _raise_for(_field_errors(e))


def merged_values(event: Event, changes: EventUpdate) -> dict[str, Any]:
    """Stored event values overlaid with the fields set on an update."""
    values = {
        key: getattr(event, key)
        for key in EventCreate.model_fields
    }
    values.update(changes.model_dump(exclude_unset=True))
    if isinstance(values.get("category"), EventCategory):
        values["category"] = values["category"].value
    return values
