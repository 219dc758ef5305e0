"""Tests for Clock and FrameScheduler."""

import pytest

from crashgraph.clock import Clock
from crashgraph.scheduler import FrameScheduler


class TestClock:
    def test_frame_ms(self):
        """Frame duration follows fps."""
        clock = Clock(fps=50)
        assert clock.fps == 50
        assert abs(clock.frame_ms - 20.0) < 1e-9

    def test_invalid_fps_raises(self):
        with pytest.raises(ValueError):
            Clock(fps=0)

    def test_advance_context(self, fake_time):
        """First frame reports one nominal frame; later frames report real deltas."""
        clock = Clock(fps=60, time_fn=fake_time)
        first = clock.advance()
        assert first.frame_number == 1
        assert abs(first.dt_ms - 1000.0 / 60) < 1e-9
        fake_time.advance(25)
        second = clock.advance()
        assert second.frame_number == 2
        assert abs(second.dt_ms - 25.0) < 1e-6
        assert abs(second.now_ms - fake_time() * 1000.0) < 1e-6

    def test_reset(self, fake_time):
        clock = Clock(time_fn=fake_time)
        clock.advance()
        clock.reset()
        assert clock.frame_number == 0
        assert abs(clock.advance().dt_ms - clock.frame_ms) < 1e-9


class TestFrameScheduler:
    def test_nothing_runs_until_pump(self, scheduler):
        calls = []
        scheduler.request_frame(calls.append)
        assert calls == []
        assert scheduler.pending
        assert scheduler.pump() == 1
        assert len(calls) == 1
        assert not scheduler.pending

    def test_cancel_frame(self, scheduler):
        calls = []
        handle = scheduler.request_frame(calls.append)
        scheduler.cancel(handle)
        assert scheduler.pump() == 0
        assert calls == []

    def test_cancel_unknown_handle_is_noop(self, scheduler):
        """None, spent and unknown handles are ignored."""
        handle = scheduler.request_frame(lambda ctx: None)
        scheduler.pump()
        scheduler.cancel(handle)
        scheduler.cancel(None)
        scheduler.cancel(9999)

    def test_request_during_pump_runs_next_frame(self, scheduler):
        """A callback that requests another frame does not run it in the same pump."""
        frames = []

        def cb(ctx):
            frames.append(ctx.frame_number)
            if len(frames) < 3:
                scheduler.request_frame(cb)

        scheduler.request_frame(cb)
        assert scheduler.pump() == 1
        assert scheduler.pump() == 1
        assert scheduler.pump() == 1
        assert scheduler.pump() == 0
        assert frames == [1, 2, 3]

    def test_call_later_fires_when_due(self, scheduler, fake_time):
        fired = []
        scheduler.call_later(100, lambda: fired.append(True))
        fake_time.advance(90)
        scheduler.pump()
        assert fired == []
        fake_time.advance(20)
        scheduler.pump()
        assert fired == [True]

    def test_timers_fire_in_deadline_order(self, scheduler, fake_time):
        order = []
        scheduler.call_later(50, lambda: order.append("b"))
        scheduler.call_later(10, lambda: order.append("a"))
        fake_time.advance(60)
        scheduler.pump()
        assert order == ["a", "b"]

    def test_cancelled_timer_never_fires(self, scheduler, fake_time):
        fired = []
        handle = scheduler.call_later(10, lambda: fired.append(True))
        scheduler.cancel(handle)
        assert not scheduler.pending
        fake_time.advance(20)
        scheduler.pump()
        assert fired == []

    def test_run_honours_max_frames(self):
        """run() exits after max_frames even while callbacks keep requesting."""
        scheduler = FrameScheduler(fps=1000)
        count = []

        def cb(ctx):
            count.append(ctx.frame_number)
            scheduler.request_frame(cb)

        scheduler.request_frame(cb)
        scheduler.run(max_frames=5)
        assert len(count) == 5

    def test_run_exits_when_idle(self):
        scheduler = FrameScheduler(fps=1000)
        scheduler.run()
        assert not scheduler.pending
