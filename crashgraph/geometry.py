"""Geometry mapping: multiplier values to surface coordinates, and resize rescaling.

The horizontal axis is linear in the normalised multiplier
``norm = min((m - 1) / (max_multiplier - 1), 1)``. The vertical axis follows
a piecewise curve that climbs gently at low multipliers and steepens as the
value grows:

======== ============ ========= ========
range    base height  span      exponent
======== ============ ========= ========
1.0-1.2  0.00         0.03      1.0
1.2-1.8  0.03         0.12      1.2
1.8-3.0  0.15         0.25      1.5
3.0-5.0  0.40         0.35      1.8
5.0-max  0.75         0.25      2.2
======== ============ ========= ========

Heights are fractions of the content height and are renormalised so the
display ceiling always lands on the top edge.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Iterable

from crashgraph.config import Padding
from crashgraph.types import Point

MIN_GRAPH_SIZE = 1.0
WOBBLE_PX = 3.0

_SEGMENTS: tuple[tuple[float, float, float, float, float], ...] = (
    # (low, high, base, span, exponent); high of the last segment is the ceiling
    (1.0, 1.2, 0.00, 0.03, 1.0),
    (1.2, 1.8, 0.03, 0.12, 1.2),
    (1.8, 3.0, 0.15, 0.25, 1.5),
    (3.0, 5.0, 0.40, 0.35, 1.8),
    (5.0, math.inf, 0.75, 0.25, 2.2),
)


def normalize(multiplier: float, max_multiplier: float) -> float:
    """Position of ``multiplier`` between 1.0 and the ceiling, in [0, 1]."""
    return min(max((multiplier - 1.0) / (max_multiplier - 1.0), 0.0), 1.0)


def height_fraction(multiplier: float, max_multiplier: float) -> float:
    """Piecewise vertical progress in [0, 1] before renormalisation."""
    m = min(max(multiplier, 1.0), max_multiplier)
    for low, high, base, span, exponent in _SEGMENTS:
        upper = max_multiplier if math.isinf(high) else high
        if m < upper or math.isinf(high):
            if upper <= low:
                return base
            local = (m - low) / (upper - low)
            return base + span * local ** exponent
    return 1.0


@dataclass(frozen=True)
class GeometryMapping:
    """Viewport and content-area geometry in logical pixels."""

    padding: Padding
    display_width: float
    display_height: float
    pixel_ratio: float = 1.0

    @classmethod
    def for_viewport(
        cls, width: float, height: float, padding: Padding, pixel_ratio: float = 1.0,
    ) -> GeometryMapping:
        return cls(
            padding=padding,
            display_width=max(float(width), 0.0),
            display_height=max(float(height), 0.0),
            pixel_ratio=pixel_ratio if pixel_ratio > 0 else 1.0,
        )

    @property
    def graph_width(self) -> float:
        return max(self.display_width - self.padding.left - self.padding.right, MIN_GRAPH_SIZE)

    @property
    def graph_height(self) -> float:
        return max(self.display_height - self.padding.top - self.padding.bottom, MIN_GRAPH_SIZE)

    @property
    def left(self) -> float:
        return self.padding.left

    @property
    def top(self) -> float:
        return self.padding.top

    @property
    def right(self) -> float:
        return self.padding.left + self.graph_width

    @property
    def bottom(self) -> float:
        return self.padding.top + self.graph_height

    def x_for(self, multiplier: float, max_multiplier: float) -> float:
        return self.left + normalize(multiplier, max_multiplier) * self.graph_width

    def y_for(self, multiplier: float, max_multiplier: float) -> float:
        ceiling = height_fraction(max_multiplier, max_multiplier)
        fraction = height_fraction(multiplier, max_multiplier) / ceiling
        y = self.bottom - fraction * self.graph_height
        if multiplier < _SEGMENTS[0][1]:
            local = (max(multiplier, 1.0) - 1.0) / (_SEGMENTS[0][1] - 1.0)
            y += math.sin(local * math.pi * 2) * WOBBLE_PX
        return min(max(y, self.top), self.bottom)

    def map_point(self, multiplier: float, elapsed_ms: float, max_multiplier: float) -> Point:
        """Sample a curve point for ``multiplier`` observed at ``elapsed_ms``."""
        return Point(
            x=self.x_for(multiplier, max_multiplier),
            y=self.y_for(multiplier, max_multiplier),
            multiplier=multiplier,
            elapsed_ms=elapsed_ms,
        )

    def origin(self) -> Point:
        """Bottom-left corner of the content area, where every round starts."""
        return Point(x=self.left, y=self.bottom, multiplier=1.0, elapsed_ms=0.0)


def rescale_points(
    points: Iterable[Point], old: GeometryMapping, new: GeometryMapping,
) -> list[Point]:
    """Map points proportionally from ``old`` content area to ``new``.

    Returns new Point objects; the inputs are left untouched.
    """
    sx = new.graph_width / old.graph_width
    sy = new.graph_height / old.graph_height
    return [
        replace(
            p,
            x=new.left + (p.x - old.left) * sx,
            y=new.top + (p.y - old.top) * sy,
        )
        for p in points
    ]
