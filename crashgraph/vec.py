"""2D vector helpers operating on (x, y) tuples."""
from __future__ import annotations

import math

from crashgraph.types import Vec


def add(a: Vec, b: Vec) -> Vec:
    return (a[0] + b[0], a[1] + b[1])


def scale(v: Vec, s: float) -> Vec:
    return (v[0] * s, v[1] * s)


def from_polar(angle: float, length: float) -> Vec:
    return (math.cos(angle) * length, math.sin(angle) * length)


def midpoint(a: Vec, b: Vec) -> Vec:
    return ((a[0] + b[0]) / 2, (a[1] + b[1]) / 2)
