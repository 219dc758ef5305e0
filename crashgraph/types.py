"""Shared types and errors for the crash graph engine."""

from __future__ import annotations

import enum
from dataclasses import dataclass

Vec = tuple[float, float]
RGB = tuple[int, int, int]


class Phase(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    CRASHED = "crashed"


@dataclass
class Point:
    """A sampled curve point in logical pixels."""

    x: float
    y: float
    multiplier: float
    elapsed_ms: float


@dataclass
class Particle:
    position: Vec
    velocity: Vec
    life: float
    size: float
    decay: float


@dataclass(frozen=True, slots=True)
class FrameContext:
    frame_number: int
    now_ms: float
    dt_ms: float


class SurfaceNotFoundError(RuntimeError):
    """Raised at construction when there is no drawing surface to render to."""
