"""FrameScheduler - frame callbacks, one-shot timers, pacing."""

import heapq
import itertools
import logging
import time
from typing import Callable

from crashgraph.clock import Clock
from crashgraph.types import FrameContext

logger = logging.getLogger(__name__)

FrameCallback = Callable[[FrameContext], None]


class FrameScheduler:
    """Cooperative single-threaded scheduler.

    ``request_frame`` queues a callback for the next frame, like a browser's
    animation-frame request. ``call_later`` queues a one-shot timer. Nothing
    runs until the host calls :meth:`pump` (an external event loop or a
    test) or :meth:`run` (a sleep-until-next-frame loop). Callbacks requested
    while a frame is being pumped run on the following frame.
    """

    def __init__(self, fps: int = 60, time_fn: Callable[[], float] = time.monotonic) -> None:
        self._clock = Clock(fps, time_fn)
        self._handles = itertools.count(1)
        self._frames: dict[int, FrameCallback] = {}
        self._timers: list[tuple[float, int, Callable[[], None]]] = []
        self._cancelled_timers: set[int] = set()

    @property
    def clock(self) -> Clock:
        return self._clock

    def now(self) -> float:
        return self._clock.now()

    @property
    def pending(self) -> bool:
        """True when a frame callback or a live timer is queued."""
        if self._frames:
            return True
        return any(handle not in self._cancelled_timers for _, handle, _ in self._timers)

    def request_frame(self, callback: FrameCallback) -> int:
        handle = next(self._handles)
        self._frames[handle] = callback
        return handle

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> int:
        handle = next(self._handles)
        heapq.heappush(self._timers, (self.now() + max(delay_ms, 0.0), handle, callback))
        return handle

    def cancel(self, handle: int | None) -> None:
        """Cancel a frame request or timer. Unknown or spent handles are ignored."""
        if handle is None:
            return
        if self._frames.pop(handle, None) is not None:
            return
        if any(h == handle for _, h, _ in self._timers):
            self._cancelled_timers.add(handle)

    def pump(self) -> int:
        """Fire due timers, then run one frame. Returns the number of callbacks run."""
        ran = self._fire_timers()
        if not self._frames:
            return ran
        ctx = self._clock.advance()
        snapshot = self._frames
        self._frames = {}
        for callback in snapshot.values():
            callback(ctx)
            ran += 1
        return ran

    def _fire_timers(self) -> int:
        now_ms = self.now()
        ran = 0
        while self._timers and self._timers[0][0] <= now_ms:
            _, handle, callback = heapq.heappop(self._timers)
            if handle in self._cancelled_timers:
                self._cancelled_timers.discard(handle)
                continue
            callback()
            ran += 1
        return ran

    def run(self, max_frames: int | None = None) -> None:
        """Pump at the configured frame rate until nothing is pending.

        Stops early after ``max_frames`` frames.
        """
        frame_s = self._clock.frame_ms / 1000.0
        frames = 0
        while self.pending:
            start = time.monotonic()
            self.pump()
            frames += 1
            if max_frames is not None and frames >= max_frames:
                break
            elapsed = time.monotonic() - start
            sleep_time = frame_s - elapsed
            if sleep_time > 0:
                time.sleep(sleep_time)
        logger.debug("Scheduler loop exited after %d frames", frames)
