from eventspark.deck.controller import SwipeDeck, window
from eventspark.deck.motion import CardFrame, CardMotion, MotionState, SwipeDirection
from eventspark.deck.sessions import DeckSessions, deck_sessions
from eventspark.deck.store import (
    DatabaseStorage,
    Decision,
    DecisionStore,
    MemoryStorage,
    Storage,
)

__all__ = [
    "SwipeDeck",
    "window",
    "CardFrame",
    "CardMotion",
    "MotionState",
    "SwipeDirection",
    "DeckSessions",
    "deck_sessions",
    "DatabaseStorage",
    "Decision",
    "DecisionStore",
    "MemoryStorage",
    "Storage",
]
