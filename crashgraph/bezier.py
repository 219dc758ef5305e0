"""Quadratic Bezier smoothing through sampled points.

Segment form:
    B(t) = (1-t)^2 P0 + 2(1-t)t C + t^2 P1,  t in [0, 1]

The curve starts at the first point. Each segment uses the next raw point as
its control point and ends at the midpoint between that point and the one
after it, so consecutive segments share tangents and the path has no sharp
joints. A final straight segment reaches the last point.
"""
from __future__ import annotations

from typing import Sequence

from crashgraph import vec
from crashgraph.types import Vec

SEGMENT_STEPS = 8


def quadratic(p0: Vec, control: Vec, p1: Vec, t: float) -> Vec:
    u = 1.0 - t
    return (
        u * u * p0[0] + 2 * u * t * control[0] + t * t * p1[0],
        u * u * p0[1] + 2 * u * t * control[1] + t * t * p1[1],
    )


def smooth_segments(points: Sequence[Vec]) -> list[tuple[Vec, Vec, Vec]]:
    """(start, control, end) triples of the smoothed path."""
    segments: list[tuple[Vec, Vec, Vec]] = []
    if len(points) < 3:
        return segments
    start = points[0]
    for i in range(1, len(points) - 1):
        end = vec.midpoint(points[i], points[i + 1])
        segments.append((start, points[i], end))
        start = end
    return segments


def smooth_path(points: Sequence[Vec], steps: int = SEGMENT_STEPS) -> list[Vec]:
    """Flatten the smoothed path to a polyline with ``steps`` samples per segment."""
    if len(points) < 3:
        return list(points)
    path: list[Vec] = [points[0]]
    for start, control, end in smooth_segments(points):
        for k in range(1, steps + 1):
            path.append(quadratic(start, control, end, k / steps))
    path.append(points[-1])
    return path
