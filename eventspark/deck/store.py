"""Persisted saved/dismissed event id sets.

The decision store keeps two independent, ordered, duplicate-free lists of
event ids. Each list is stored as a JSON array of strings under its own
key in a small key/value ``Storage``:

    event-spark-saved-events      -> ["id-1", "id-7"]
    event-spark-dismissed-events  -> ["id-3"]

Reads are forgiving: a missing key, text that is not JSON, or JSON that is
not a list of strings all read as an empty list. Writes go straight to the
storage and raise StorageError if it cannot be written.

An id may be in both lists at once. Nothing here enforces exclusivity
between saved and dismissed.
"""

import json
import logging
from datetime import UTC, datetime
from enum import Enum
from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from eventspark.core.errors import StorageError
from eventspark.models import StorageEntry

logger = logging.getLogger(__name__)

SAVED_EVENTS_KEY = "event-spark-saved-events"
DISMISSED_EVENTS_KEY = "event-spark-dismissed-events"


class Decision(str, Enum):
    SAVED = "saved"
    DISMISSED = "dismissed"


STORAGE_KEYS = {
    Decision.SAVED: SAVED_EVENTS_KEY,
    Decision.DISMISSED: DISMISSED_EVENTS_KEY,
}


class Storage(Protocol):
    """Minimal key/value interface, shaped like browser local storage."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryStorage:
    """Process-local storage, used for tests and the demo backend."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)


class DatabaseStorage:
    """Storage rows scoped to one namespace, persisted through SQLModel.

    A short-lived session is opened per call so the storage can outlive the
    request that created it.
    """

    def __init__(self, engine, namespace: str):
        self.engine = engine
        self.namespace = namespace

    def get_item(self, key: str) -> str | None:
        try:
            with Session(self.engine) as session:
                entry = session.get(StorageEntry, (self.namespace, key))
                return entry.value if entry else None
        except SQLAlchemyError as e:
            logger.error(f"Failed to read storage key {key!r} for {self.namespace}: {e}")
            return None

    def set_item(self, key: str, value: str) -> None:
        try:
            with Session(self.engine) as session:
                entry = session.get(StorageEntry, (self.namespace, key))
                if entry is None:
                    entry = StorageEntry(namespace=self.namespace, key=key, value=value)
                else:
                    entry.value = value
                    entry.updated_at = datetime.now(UTC)
                session.add(entry)
                session.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Could not write storage key {key!r}: {e}") from e

    def remove_item(self, key: str) -> None:
        try:
            with Session(self.engine) as session:
                entry = session.get(StorageEntry, (self.namespace, key))
                if entry is not None:
                    session.delete(entry)
                    session.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Could not remove storage key {key!r}: {e}") from e


class DecisionStore:
    """Saved and dismissed event ids for one visitor."""

    def __init__(self, storage: Storage):
        self.storage = storage

    def all(self, decision: Decision) -> list[str]:
        """Ids in insertion order; malformed stored data reads as empty."""
        key = STORAGE_KEYS[Decision(decision)]
        raw = self.storage.get_item(key)
        if not raw:
            return []
        try:
            ids = json.loads(raw)
        except ValueError:
            logger.warning(f"Ignoring malformed JSON under {key}")
            return []
        if not isinstance(ids, list) or not all(isinstance(i, str) for i in ids):
            logger.warning(f"Ignoring unexpected value shape under {key}")
            return []
        # Drop duplicates a hand-edited value might contain
        return list(dict.fromkeys(ids))

    def contains(self, decision: Decision, event_id: str) -> bool:
        return event_id in self.all(decision)

    def add(self, decision: Decision, event_id: str) -> None:
        ids = self.all(decision)
        if event_id in ids:
            return
        ids.append(event_id)
        self._write(decision, ids)

    def remove(self, decision: Decision, event_id: str) -> None:
        ids = self.all(decision)
        if event_id not in ids:
            return
        self._write(decision, [i for i in ids if i != event_id])

    def clear(self, decision: Decision) -> None:
        self.storage.remove_item(STORAGE_KEYS[Decision(decision)])

    def _write(self, decision: Decision, ids: list[str]) -> None:
        self.storage.set_item(STORAGE_KEYS[Decision(decision)], json.dumps(ids))
