"""Shared fixtures: a controllable clock, a recording canvas, graph factories."""
from __future__ import annotations

import os
import random
from typing import Any, Callable

import pytest

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")

from crashgraph.config import GraphConfig
from crashgraph.engine import CrashGraph
from crashgraph.scheduler import FrameScheduler

FRAME_MS = 16.0


class FakeTime:
    """Manually advanced time source, in seconds like time.monotonic."""

    def __init__(self, start_s: float = 100.0) -> None:
        self.now_s = start_s

    def __call__(self) -> float:
        return self.now_s

    def advance(self, ms: float) -> None:
        self.now_s += ms / 1000.0


class RecordingCanvas:
    """Canvas that records every draw call as (name, args) instead of drawing."""

    def __init__(self, width: float = 800.0, height: float = 400.0, pixel_ratio: float = 1.0) -> None:
        self.width = width
        self.height = height
        self.pixel_ratio = pixel_ratio
        self.calls: list[tuple[str, tuple[Any, ...]]] = []

    def size(self) -> tuple[float, float]:
        return self.width, self.height

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))

    def clear(self, color):
        self._record("clear", color)

    def polyline(self, points, color, width, alpha=1.0):
        self._record("polyline", list(points), color, width, alpha)

    def dashed_line(self, start, end, color, width, dash, alpha=1.0):
        self._record("dashed_line", start, end, color, width, dash, alpha)

    def fill_gradient(self, points, color, top_alpha, bottom_alpha):
        self._record("fill_gradient", list(points), color, top_alpha, bottom_alpha)

    def circle(self, center, radius, color, alpha=1.0):
        self._record("circle", center, radius, color, alpha)

    def glow(self, center, radius, color, alpha=1.0):
        self._record("glow", center, radius, color, alpha)

    def text(self, text, position, color, size, align="center", glow=None, alpha=1.0):
        self._record("text", text, position, color, size, align, glow, alpha)

    def cached_layer(self, key, draw):
        self._record("cached_layer", key)
        draw(self)

    def names(self) -> list[str]:
        return [name for name, _ in self.calls]

    def texts(self) -> list[str]:
        return [args[0] for name, args in self.calls if name == "text"]

    def reset_calls(self) -> None:
        self.calls.clear()


@pytest.fixture
def fake_time() -> FakeTime:
    return FakeTime()


@pytest.fixture
def scheduler(fake_time: FakeTime) -> FrameScheduler:
    return FrameScheduler(fps=60, time_fn=fake_time)


@pytest.fixture
def canvas() -> RecordingCanvas:
    return RecordingCanvas()


@pytest.fixture
def make_graph(canvas: RecordingCanvas, scheduler: FrameScheduler) -> Callable[..., CrashGraph]:
    """Build a CrashGraph on the shared canvas and scheduler with a seeded RNG."""

    def _make(**options: Any) -> CrashGraph:
        config = GraphConfig(**options)
        return CrashGraph(canvas, config, scheduler=scheduler, rng=random.Random(7))

    return _make


@pytest.fixture
def run_frames(fake_time: FakeTime, scheduler: FrameScheduler) -> Callable[..., None]:
    """Advance the clock by ``step_ms`` and pump one frame, ``n`` times."""

    def _run(n: int, step_ms: float = FRAME_MS) -> None:
        for _ in range(n):
            fake_time.advance(step_ms)
            scheduler.pump()

    return _run
