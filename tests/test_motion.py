"""Tests for the card drag/exit state machine."""

import asyncio

import pytest

from eventspark.deck.motion import (
    CardMotion,
    MotionState,
    SwipeDirection,
    ease_out,
    interpolate,
)
from eventspark.deck.store import Decision


class FakeSleep:
    """Records frame waits without waiting; can run a hook on a given frame."""

    def __init__(self, on_call=None, at_call=None):
        self.calls = 0
        self.on_call = on_call
        self.at_call = at_call

    async def __call__(self, seconds):
        self.calls += 1
        if self.on_call is not None and self.calls == self.at_call:
            self.on_call()


def make_motion(exits, **kwargs) -> CardMotion:
    kwargs.setdefault("sleep", FakeSleep())
    return CardMotion(on_exit=exits.append, **kwargs)


class TestInterpolation:
    """Tests for the offset-to-visual mapping helpers."""

    def test_interpolate_between_stops(self):
        """Test linear interpolation inside the stop range."""
        assert interpolate(100, [-200, 0, 200], [-15, 0, 15]) == pytest.approx(7.5)
        assert interpolate(-50, [-100, 0], [1, 0]) == pytest.approx(0.5)

    def test_interpolate_clamps(self):
        """Test values outside the stops are clamped."""
        assert interpolate(999, [-200, 0, 200], [-15, 0, 15]) == 15
        assert interpolate(-999, [-200, 0, 200], [-15, 0, 15]) == -15

    def test_ease_out(self):
        """Test the ease-out curve ends and starts where expected."""
        assert ease_out(0) == 0
        assert ease_out(1) == 1
        assert ease_out(0.5) == pytest.approx(0.75)
        assert ease_out(2) == 1


class TestDragging:
    """Tests for pointer drags."""

    def test_release_inside_threshold_snaps_back(self):
        """Test an 80px drag returns the card to idle with no decision."""
        exits = []
        motion = make_motion(exits, threshold=100)
        assert motion.pointer_down()
        motion.drag_to(80)
        assert motion.release() is None
        assert motion.state is MotionState.IDLE
        assert motion.offset == 0
        assert exits == []

    def test_release_at_threshold_snaps_back(self):
        """Test exactly the threshold is not enough to commit."""
        exits = []
        motion = make_motion(exits, threshold=100)
        motion.pointer_down()
        motion.drag_to(-100)
        assert motion.release() is None
        assert exits == []

    def test_release_beyond_threshold_commits_once(self):
        """Test a 150px drag exits right and reports exactly once."""
        exits = []
        motion = make_motion(exits, threshold=100)
        motion.pointer_down()
        motion.drag_to(150)
        assert motion.release() is SwipeDirection.RIGHT
        assert motion.state is MotionState.EXITING
        assert exits == [SwipeDirection.RIGHT]
        assert exits[0].decision is Decision.SAVED

        # A second release or exit request does not report again
        assert motion.release() is None
        assert asyncio.run(motion.request_exit(SwipeDirection.LEFT)) is False
        assert exits == [SwipeDirection.RIGHT]

    def test_leftward_drag_dismisses(self):
        """Test a drag past the threshold to the left passes on the card."""
        exits = []
        motion = make_motion(exits)
        motion.pointer_down()
        motion.drag_to(-250)
        assert motion.release() is SwipeDirection.LEFT
        assert exits[0].decision is Decision.DISMISSED

    def test_pointer_down_only_from_idle(self):
        """Test a second pointer cannot grab a dragging card."""
        motion = make_motion([])
        assert motion.pointer_down()
        assert not motion.pointer_down()

    def test_frame_follows_offset(self):
        """Test rotation, opacity and overlays track the drag."""
        motion = make_motion([])
        motion.pointer_down()
        motion.drag_to(100)
        frame = motion.frame()
        assert frame.state is MotionState.DRAGGING
        assert frame.rotate == pytest.approx(7.5)
        assert frame.opacity == pytest.approx(1.0)
        assert frame.save_overlay == pytest.approx(1.0)
        assert frame.pass_overlay == 0

        motion.drag_to(-200)
        frame = motion.frame()
        assert frame.opacity == pytest.approx(0.5)
        assert frame.pass_overlay == 1
        assert frame.save_overlay == 0


class TestProgrammaticExit:
    """Tests for button and keyboard swipes."""

    def test_exit_animates_then_reports(self):
        """Test the card animates over the duration before reporting."""
        exits = []
        frames = []
        sleep = FakeSleep()
        motion = make_motion(
            exits, exit_duration=0.3, frame_interval=0.1, on_frame=frames.append, sleep=sleep
        )

        assert asyncio.run(motion.request_exit(SwipeDirection.LEFT)) is True
        assert exits == [SwipeDirection.LEFT]
        assert sleep.calls == 3
        assert frames[-1].x == pytest.approx(-400)
        assert frames[-1].opacity == pytest.approx(0)
        assert frames[-1].rotate == pytest.approx(-15)
        assert all(f.pass_overlay == 1 for f in frames)
        # Eased: each frame moves further left than the last
        xs = [f.x for f in frames]
        assert xs == sorted(xs, reverse=True)

    def test_not_reported_until_animation_finishes(self):
        """Test nothing is reported mid-animation."""
        exits = []
        seen = []
        motion = None

        def check():
            seen.append((motion.exit_pending, list(exits)))

        sleep = FakeSleep(on_call=check, at_call=2)
        motion = make_motion(exits, exit_duration=0.3, frame_interval=0.1, sleep=sleep)
        asyncio.run(motion.request_exit(SwipeDirection.RIGHT))
        assert seen == [(True, [])]
        assert exits == [SwipeDirection.RIGHT]

    def test_second_request_while_exiting_is_ignored(self):
        """Test the exit guard against double swipes."""
        exits = []
        results = []
        motion = None

        def second_request():
            results.append(asyncio.ensure_future(motion.request_exit(SwipeDirection.LEFT)))

        sleep = FakeSleep(on_call=second_request, at_call=1)
        motion = make_motion(exits, exit_duration=0.3, frame_interval=0.1, sleep=sleep)

        async def run():
            first = await motion.request_exit(SwipeDirection.RIGHT)
            second = await results[0]
            return first, second

        assert asyncio.run(run()) == (True, False)
        assert exits == [SwipeDirection.RIGHT]

    def test_cancel_mid_animation(self):
        """Test cancelling drops the exit without reporting and frees the card."""
        exits = []
        motion = None
        sleep = FakeSleep(on_call=lambda: motion.cancel(), at_call=1)
        motion = make_motion(exits, exit_duration=0.3, frame_interval=0.1, sleep=sleep)

        assert asyncio.run(motion.request_exit(SwipeDirection.RIGHT)) is False
        assert exits == []
        assert motion.state is MotionState.IDLE
        assert not motion.exit_pending

    def test_task_cancellation_resets(self):
        """Test a cancelled animation task leaves the card idle."""
        exits = []
        motion = make_motion(exits, exit_duration=10, frame_interval=1, sleep=asyncio.sleep)

        async def run():
            task = asyncio.ensure_future(motion.request_exit(SwipeDirection.RIGHT))
            await asyncio.sleep(0)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(run())
        assert exits == []
        assert motion.state is MotionState.IDLE

    def test_zero_duration_reports_immediately(self):
        """Test an instant exit still reports exactly once."""
        exits = []
        sleep = FakeSleep()
        motion = make_motion(exits, exit_duration=0, sleep=sleep)
        assert asyncio.run(motion.request_exit(SwipeDirection.RIGHT)) is True
        assert exits == [SwipeDirection.RIGHT]
        assert sleep.calls == 0

    def test_request_ignored_while_dragging(self):
        """Test a button swipe cannot interrupt a drag."""
        exits = []
        motion = make_motion(exits)
        motion.pointer_down()
        assert asyncio.run(motion.request_exit(SwipeDirection.RIGHT)) is False
        assert motion.state is MotionState.DRAGGING
