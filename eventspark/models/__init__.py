from eventspark.models.event import (
    CATEGORY_LABELS,
    Event,
    EventCategory,
    EventCreate,
    EventUpdate,
)
from eventspark.models.storage import StorageEntry

__all__ = [
    "Event",
    "EventCategory",
    "EventCreate",
    "EventUpdate",
    "CATEGORY_LABELS",
    "StorageEntry",
]
