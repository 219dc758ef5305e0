"""Value sources: produce the displayed multiplier each frame."""
from __future__ import annotations

import math
from typing import Protocol

SNAP_EPSILON = 1e-4


class ValueSource(Protocol):
    current: float

    def update(self, elapsed_ms: float) -> float: ...

    def reset(self) -> None: ...


def growth_multiplier(elapsed_ms: float, growth_rate: float) -> float:
    """Closed-form growth ``(1 + growth_rate) ** elapsed_ms``; 1.0 at or before zero."""
    if elapsed_ms <= 0:
        return 1.0
    return (1.0 + growth_rate) ** elapsed_ms


class GrowthSource:
    """Deterministic exponential growth as a function of elapsed time."""

    def __init__(self, growth_rate: float) -> None:
        self.growth_rate = growth_rate
        self.current = 1.0

    def update(self, elapsed_ms: float) -> float:
        # Never step backwards if the host clock jitters.
        self.current = max(self.current, growth_multiplier(elapsed_ms, self.growth_rate))
        return self.current

    def reset(self) -> None:
        self.current = 1.0


class SmoothedSource:
    """Exponential smoothing toward an externally pushed target.

    Each update closes ``smoothing`` of the remaining gap, and snaps once the
    gap is within ``SNAP_EPSILON``. The current value therefore approaches the
    target monotonically and never overshoots it.
    """

    def __init__(self, smoothing: float) -> None:
        self.smoothing = smoothing
        self.current = 1.0
        self.target = 1.0

    def set_target(self, value: float, immediate: bool = False) -> bool:
        """Push a new target. Non-finite values are ignored; returns False then."""
        if not math.isfinite(value):
            return False
        self.target = max(value, 1.0)
        if immediate:
            self.current = self.target
        return True

    def update(self, elapsed_ms: float) -> float:
        delta = self.target - self.current
        if abs(delta) > SNAP_EPSILON:
            self.current += delta * self.smoothing
        else:
            self.current = self.target
        return self.current

    def reset(self) -> None:
        self.current = 1.0
        self.target = 1.0
