"""Easing functions for time-bounded animations."""
from __future__ import annotations

from typing import Callable


def linear(t: float) -> float:
    return t


def ease_out_quad(t: float) -> float:
    return t * (2 - t)


def ease_in_cubic(t: float) -> float:
    return t * t * t


def ease_out_cubic(t: float) -> float:
    return 1 - (1 - t) ** 3


def ease_in_out_cubic(t: float) -> float:
    if t < 0.5:
        return 4 * t * t * t
    return 1 - (-2 * t + 2) ** 3 / 2


EASINGS: dict[str, Callable[[float], float]] = {
    "linear": linear,
    "ease_out_quad": ease_out_quad,
    "ease_in_cubic": ease_in_cubic,
    "ease_out_cubic": ease_out_cubic,
    "ease_in_out_cubic": ease_in_out_cubic,
}


def progress(elapsed: float, duration: float, easing: str = "linear") -> float:
    """Eased progress of ``elapsed`` over ``duration``, clamped to [0, 1]."""
    if duration <= 0:
        return 1.0
    t = min(max(elapsed / duration, 0.0), 1.0)
    return EASINGS[easing](t)
