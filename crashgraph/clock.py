"""Clock and FrameContext for the frame scheduler."""

import time
from typing import Callable

from crashgraph.types import FrameContext


class Clock:
    def __init__(self, fps: int = 60, time_fn: Callable[[], float] = time.monotonic) -> None:
        if fps <= 0:
            raise ValueError("fps must be positive")
        self._fps = fps
        self._frame_ms = 1000.0 / fps
        self._time_fn = time_fn
        self._frame_number = 0
        self._last_ms: float | None = None

    @property
    def fps(self) -> int:
        return self._fps

    @property
    def frame_ms(self) -> float:
        return self._frame_ms

    @property
    def frame_number(self) -> int:
        return self._frame_number

    def now(self) -> float:
        """Current time in milliseconds."""
        return self._time_fn() * 1000.0

    def advance(self) -> FrameContext:
        now_ms = self.now()
        dt_ms = self._frame_ms if self._last_ms is None else now_ms - self._last_ms
        self._last_ms = now_ms
        self._frame_number += 1
        return FrameContext(frame_number=self._frame_number, now_ms=now_ms, dt_ms=dt_ms)

    def reset(self, frame_number: int = 0) -> None:
        self._frame_number = frame_number
        self._last_ms = None
