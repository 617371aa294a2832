"""Per-visitor deck sessions.

Each visitor browses their own deck. The deck (cursor plus the snapshot of
events it was built from) lives here between requests, keyed by visitor id.
Decks are dropped when the visitor starts over or asks for a refresh, when
their snapshot is older than the caller allows, or by the scheduler once
they have been idle for a while.

Only touched from the event loop: route handlers and the scheduler's async
deck expiry job.
"""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from eventspark.deck.controller import SwipeDeck

logger = logging.getLogger(__name__)


@dataclass
class DeckSession:
    deck: SwipeDeck
    built_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    last_seen: datetime = field(default_factory=lambda: datetime.now(UTC))


class DeckSessions:
    """Registry of live decks."""

    def __init__(self):
        self._sessions: dict[str, DeckSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, visitor_id: str, max_age: timedelta | None = None) -> SwipeDeck | None:
        """The visitor's deck, or None.

        With ``max_age``, a deck built longer ago than that is dropped and
        None is returned so the caller rebuilds it from fresh events.
        """
        entry = self._sessions.get(visitor_id)
        if entry is None:
            return None
        now = datetime.now(UTC)
        if max_age is not None and now - entry.built_at > max_age:
            logger.debug(f"Deck for {visitor_id} is older than {max_age}, rebuilding")
            self.drop(visitor_id)
            return None
        entry.last_seen = now
        return entry.deck

    def put(self, visitor_id: str, deck: SwipeDeck) -> SwipeDeck:
        self.drop(visitor_id)
        self._sessions[visitor_id] = DeckSession(deck=deck)
        return deck

    def drop(self, visitor_id: str) -> None:
        entry = self._sessions.pop(visitor_id, None)
        if entry is not None:
            entry.deck.close()

    def expire_idle(self, max_idle: timedelta, now: datetime | None = None) -> int:
        """Drop decks not used within ``max_idle``; returns how many were dropped."""
        now = now or datetime.now(UTC)
        expired = [
            visitor_id
            for visitor_id, entry in self._sessions.items()
            if now - entry.last_seen > max_idle
        ]
        for visitor_id in expired:
            self.drop(visitor_id)
        if expired:
            logger.info(f"Expired {len(expired)} idle deck sessions")
        return len(expired)

    def clear(self) -> None:
        for visitor_id in list(self._sessions):
            self.drop(visitor_id)


deck_sessions = DeckSessions()
