"""Point buffer: ordered, capacity-bounded curve samples."""
from __future__ import annotations

from collections import deque
from typing import Iterator

from crashgraph.geometry import GeometryMapping, rescale_points
from crashgraph.types import Point

APPEND_THRESHOLD = 0.005


class PointBuffer:
    """Chronological curve samples, oldest first.

    A new sample is appended only when its multiplier exceeds the last
    buffered one by more than ``APPEND_THRESHOLD``; otherwise the last point
    is amended in place. Past ``capacity`` the oldest points are dropped.
    """

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._capacity = capacity
        self._points: deque[Point] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[Point]:
        return iter(self._points)

    def __bool__(self) -> bool:
        return bool(self._points)

    @property
    def head(self) -> Point | None:
        return self._points[-1] if self._points else None

    def sample(self, point: Point) -> bool:
        """Append or amend. Returns True if a new point was appended."""
        last = self.head
        if last is None or point.multiplier - last.multiplier > APPEND_THRESHOLD:
            self._points.append(point)
            return True
        last.x = point.x
        last.y = point.y
        last.multiplier = point.multiplier
        last.elapsed_ms = point.elapsed_ms
        return False

    def push(self, point: Point) -> None:
        """Append unconditionally (round origin)."""
        self._points.append(point)

    def snapshot(self) -> tuple[Point, ...]:
        return tuple(self._points)

    def rescale(self, old: GeometryMapping, new: GeometryMapping) -> None:
        self._points = deque(rescale_points(self._points, old, new), maxlen=self._capacity)

    def clear(self) -> None:
        self._points.clear()
