"""Drag and exit state machine for the top card of the deck.

A card is in one of three states:

    IDLE      stationary, no pointer engaged
    DRAGGING  pointer held; the horizontal offset drives rotation, opacity
              and the SAVE / PASS overlays
    EXITING   leaving the deck in a committed direction

Two ways into EXITING:

    * releasing a drag beyond the threshold. The card carries its own
      momentum off screen, so the exit is reported immediately.
    * a button or keyboard swipe from IDLE. The engine animates the card
      off screen over ``exit_duration`` seconds (ease-out) and reports the
      exit when the animation ends.

Releasing a drag at or inside the threshold snaps the card back to IDLE
with no decision. Each exit is reported exactly once; requests made while
already exiting are ignored. ``cancel()`` tears a card down mid-animation
without reporting, and releases the exit guard.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum

from eventspark.deck.store import Decision

logger = logging.getLogger(__name__)

SWIPE_THRESHOLD = 100.0
EXIT_DISTANCE = 400.0
EXIT_DURATION = 0.3
FRAME_INTERVAL = 1 / 60

# Offset -> visual mappings, clamped at both ends
ROTATION_STOPS = ([-200.0, 0.0, 200.0], [-15.0, 0.0, 15.0])
OPACITY_STOPS = ([-200.0, -100.0, 0.0, 100.0, 200.0], [0.5, 1.0, 1.0, 1.0, 0.5])
SAVE_OVERLAY_STOPS = ([0.0, 100.0], [0.0, 1.0])
PASS_OVERLAY_STOPS = ([-100.0, 0.0], [1.0, 0.0])


class SwipeDirection(str, Enum):
    LEFT = "left"  # pass
    RIGHT = "right"  # save

    @property
    def decision(self) -> Decision:
        return Decision.SAVED if self is SwipeDirection.RIGHT else Decision.DISMISSED


class MotionState(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    EXITING = "exiting"


def interpolate(value: float, inputs: list[float], outputs: list[float]) -> float:
    """Piecewise-linear map of value over ascending input stops, clamped."""
    if value <= inputs[0]:
        return outputs[0]
    if value >= inputs[-1]:
        return outputs[-1]
    for i in range(1, len(inputs)):
        if value <= inputs[i]:
            lo, hi = inputs[i - 1], inputs[i]
            t = (value - lo) / (hi - lo)
            return outputs[i - 1] + t * (outputs[i] - outputs[i - 1])
    return outputs[-1]


def ease_out(t: float) -> float:
    t = min(max(t, 0.0), 1.0)
    return 1 - (1 - t) ** 2


@dataclass(frozen=True)
class CardFrame:
    """What the top card looks like right now."""
    state: MotionState
    x: float
    rotate: float
    opacity: float
    save_overlay: float
    pass_overlay: float


class CardMotion:
    """Motion state for one card.

    ``on_exit`` is called with the committed direction once the card has
    left. A fresh CardMotion is used for every card that reaches the top.
    """

    def __init__(
        self,
        on_exit: Callable[[SwipeDirection], object],
        threshold: float = SWIPE_THRESHOLD,
        exit_distance: float = EXIT_DISTANCE,
        exit_duration: float = EXIT_DURATION,
        frame_interval: float = FRAME_INTERVAL,
        on_frame: Callable[[CardFrame], object] | None = None,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ):
        self.on_exit = on_exit
        self.threshold = threshold
        self.exit_distance = exit_distance
        self.exit_duration = exit_duration
        self.frame_interval = frame_interval
        self.on_frame = on_frame
        self._sleep = sleep

        self.state = MotionState.IDLE
        self.offset = 0.0
        self.exit_direction: SwipeDirection | None = None
        self._programmatic = False
        self._progress = 0.0
        self._reported = False
        self._generation = 0

    @property
    def exit_pending(self) -> bool:
        """True while an exit has started but not yet been reported."""
        return self.state is MotionState.EXITING and not self._reported

    def pointer_down(self) -> bool:
        if self.state is not MotionState.IDLE:
            return False
        self.state = MotionState.DRAGGING
        self.offset = 0.0
        return True

    def drag_to(self, offset: float) -> None:
        if self.state is MotionState.DRAGGING:
            self.offset = float(offset)

    def release(self) -> SwipeDirection | None:
        """End a drag; returns the committed direction, or None on snap-back."""
        if self.state is not MotionState.DRAGGING:
            return None

        if abs(self.offset) > self.threshold:
            direction = SwipeDirection.RIGHT if self.offset > 0 else SwipeDirection.LEFT
            self.state = MotionState.EXITING
            self.exit_direction = direction
            self._programmatic = False
            self._report(direction)
            return direction

        logger.debug(f"Drag released at {self.offset:.0f}px, snapping back")
        self.state = MotionState.IDLE
        self.offset = 0.0
        return None

    async def request_exit(self, direction: SwipeDirection) -> bool:
        """Animate the card off screen, then report the exit.

        Returns False when the request was ignored (not idle, or already
        exiting) or the animation was cancelled before it finished.
        """
        direction = SwipeDirection(direction)
        if self.state is not MotionState.IDLE:
            return False

        self.state = MotionState.EXITING
        self.exit_direction = direction
        self._programmatic = True
        self._progress = 0.0
        self._generation += 1
        generation = self._generation
        target = self.exit_distance if direction is SwipeDirection.RIGHT else -self.exit_distance

        try:
            elapsed = 0.0
            while elapsed < self.exit_duration:
                self._progress = ease_out(elapsed / self.exit_duration)
                self.offset = target * self._progress
                self._emit_frame()
                await self._sleep(self.frame_interval)
                if generation != self._generation:
                    return False
                elapsed += self.frame_interval
        except asyncio.CancelledError:
            self._reset()
            raise

        self._progress = 1.0
        self.offset = target
        self._emit_frame()
        self._report(direction)
        return True

    def cancel(self) -> None:
        """Tear down the card; a pending exit is dropped without reporting."""
        if self.exit_pending:
            logger.debug("Cancelling pending card exit")
            self._generation += 1
            self._reset()
        elif self.state is MotionState.DRAGGING:
            self._reset()

    def frame(self) -> CardFrame:
        if self._programmatic and self.state is MotionState.EXITING:
            sign = 1.0 if self.exit_direction is SwipeDirection.RIGHT else -1.0
            return CardFrame(
                state=self.state,
                x=self.offset,
                rotate=15.0 * sign * self._progress,
                opacity=1.0 - self._progress,
                save_overlay=1.0 if sign > 0 else 0.0,
                pass_overlay=1.0 if sign < 0 else 0.0,
            )
        return CardFrame(
            state=self.state,
            x=self.offset,
            rotate=interpolate(self.offset, *ROTATION_STOPS),
            opacity=interpolate(self.offset, *OPACITY_STOPS),
            save_overlay=interpolate(self.offset, *SAVE_OVERLAY_STOPS),
            pass_overlay=interpolate(self.offset, *PASS_OVERLAY_STOPS),
        )

    def _emit_frame(self) -> None:
        if self.on_frame is not None:
            self.on_frame(self.frame())

    def _report(self, direction: SwipeDirection) -> None:
        if self._reported:
            return
        self._reported = True
        self.on_exit(direction)

    def _reset(self) -> None:
        self.state = MotionState.IDLE
        self.offset = 0.0
        self.exit_direction = None
        self._programmatic = False
        self._progress = 0.0
