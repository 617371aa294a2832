"""Swipe deck: a cursor over an ordered list of events.

The deck shows the event at the cursor as the top card, with up to two
more peeking behind it. Committing a decision records it in the decision
store first and only then moves the cursor, so a failure between the two
leaves the event marked rather than silently shown again unmarked.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence

from eventspark.deck.motion import CardMotion, SwipeDirection
from eventspark.deck.store import Decision, DecisionStore
from eventspark.models import Event

logger = logging.getLogger(__name__)

WINDOW_SIZE = 3


def window(items: Sequence[Event], cursor: int, size: int = WINDOW_SIZE) -> list[Event]:
    """Up to ``size`` items starting at ``cursor``; empty past the end."""
    if cursor < 0:
        raise ValueError("cursor must be non-negative")
    return list(items[cursor:cursor + size])


class SwipeDeck:
    """Deck state for one visitor's browsing session.

    Attributes:
        events: Snapshot of the events being browsed, in display order.
        store: Where save/dismiss decisions are recorded.
        cursor: Index of the top card. Only moves forward, except on reset().
    """

    def __init__(
        self,
        events: Sequence[Event],
        store: DecisionStore,
        window_size: int = WINDOW_SIZE,
        threshold: float | None = None,
        exit_distance: float | None = None,
        exit_duration: float | None = None,
        on_empty: Callable[[], object] | None = None,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ):
        self.events = list(events)
        self.store = store
        self.window_size = window_size
        self.on_empty = on_empty
        self.cursor = 0

        self._motion_options = {
            key: value
            for key, value in (
                ("threshold", threshold),
                ("exit_distance", exit_distance),
                ("exit_duration", exit_duration),
            )
            if value is not None
        }
        self._sleep = sleep
        self._motion: CardMotion | None = None
        self._committing = False

    @property
    def is_exhausted(self) -> bool:
        return self.cursor >= len(self.events)

    @property
    def current(self) -> Event | None:
        if self.is_exhausted:
            return None
        return self.events[self.cursor]

    @property
    def remaining(self) -> int:
        return max(0, len(self.events) - self.cursor)

    @property
    def position(self) -> tuple[int, int]:
        """1-based index of the top card and the deck size."""
        return min(self.cursor + 1, len(self.events)), len(self.events)

    @property
    def motion(self) -> CardMotion | None:
        """Motion engine for the current top card, created on first use."""
        if self.is_exhausted:
            return None
        if self._motion is None:
            self._motion = CardMotion(
                on_exit=self._on_card_exit,
                sleep=self._sleep,
                **self._motion_options,
            )
        return self._motion

    def window(self) -> list[Event]:
        return window(self.events, self.cursor, self.window_size)

    def commit(self, decision: Decision) -> Event | None:
        """Record a decision for the top card and advance.

        Returns the committed event, or None when there was nothing to do:
        the deck is exhausted, another commit is running, or the top card is
        still animating out.
        """
        decision = Decision(decision)
        if self.is_exhausted or self._committing:
            return None
        if self._motion is not None and self._motion.exit_pending:
            return None

        event = self.events[self.cursor]
        self._committing = True
        try:
            self.store.add(decision, event.id)
        finally:
            self._committing = False

        self.cursor += 1
        self._motion = None
        logger.debug(f"Committed {decision.value} for {event.id}, cursor now {self.cursor}")

        if self.is_exhausted and self.on_empty is not None:
            self.on_empty()
        return event

    async def swipe(self, direction: SwipeDirection) -> Event | None:
        """Button or keyboard swipe: animate the top card out, then commit."""
        motion = self.motion
        if motion is None:
            return None
        event = self.current
        if not await motion.request_exit(direction):
            return None
        return event

    def drag(self, offset: float) -> Event | None:
        """A full drag gesture released at ``offset`` pixels.

        Returns the committed event, or None if the card snapped back.
        """
        motion = self.motion
        if motion is None or not motion.pointer_down():
            return None
        event = self.current
        motion.drag_to(offset)
        if motion.release() is None:
            return None
        return event

    def reset(self) -> None:
        """Start over from the first card. Recorded decisions are kept."""
        self.close()
        self.cursor = 0

    def close(self) -> None:
        """Drop any in-flight card animation without committing it."""
        if self._motion is not None:
            self._motion.cancel()
            self._motion = None

    def _on_card_exit(self, direction: SwipeDirection) -> None:
        try:
            self.commit(direction.decision)
        except Exception:
            # Nothing was recorded; a fresh card motion lets the visitor retry
            self._motion = None
            logger.exception("Failed to record swipe decision")
            raise
