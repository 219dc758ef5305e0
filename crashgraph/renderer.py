"""Renderer: draws one frame of the graph onto a Canvas.

Draw order, back to front: background, grid, gradient fill, smoothed curve,
head marker, trail, multiplier label, then particles once crashed.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

from crashgraph import bezier
from crashgraph.canvas import Canvas
from crashgraph.config import GraphConfig
from crashgraph.easing import progress
from crashgraph.geometry import GeometryMapping
from crashgraph.types import RGB, Particle, Phase, Point, Vec

GRID_COLUMNS = 10
GRID_ROWS = 8
GRID_COLOR: RGB = (255, 255, 255)
GRID_ALPHA = 0.05
MARKERS = (2.0, 5.0, 10.0)
MARKER_ALPHA = 0.15
MARKER_LABEL_ALPHA = 0.3
FILL_TOP_ALPHA = 0.25
PULSE_PERIOD_MS = 150.0
PULSE_AMPLITUDE = 3.0
MARKER_RADIUS = 8.0
GLOW_PULSE = 0.15
TRAIL_ALPHA = 0.6
TRAIL_SIZE = 5.0
LABEL_SIZE = 48
COLLAPSE_DEPTH = 0.6
WHITE: RGB = (255, 255, 255)


def format_multiplier(value: float) -> str:
    return f"{value:.2f}x"


def collapse(
    points: Sequence[Point],
    geometry: GeometryMapping,
    elapsed_ms: float,
    duration_ms: float,
    easing: str = "ease_out_cubic",
) -> list[Vec]:
    """Curve coordinates after ``elapsed_ms`` of the post-crash fall.

    Each point drops by an amount proportional to its age (the oldest point
    falls furthest, the head not at all), scaled by the eased progress
    (cubic ease-out by default) and clamped to the content floor. Past
    ``duration_ms`` the result no longer changes.
    """
    t = progress(elapsed_ms, duration_ms, easing)
    n = len(points)
    if n == 0:
        return []
    depth = geometry.graph_height * COLLAPSE_DEPTH
    out: list[Vec] = []
    for i, p in enumerate(points):
        age = 1.0 - i / (n - 1) if n > 1 else 0.0
        out.append((p.x, min(p.y + t * age * depth, geometry.bottom)))
    return out


@dataclass(frozen=True)
class FrameView:
    """Read-only snapshot of what the renderer needs for one frame."""

    phase: Phase
    multiplier: float
    points: Sequence[Point]
    geometry: GeometryMapping
    now_ms: float
    crash_ms: float | None = None


class Renderer:
    """Owns the canvas and its pixel-ratio transform."""

    def __init__(self, canvas: Canvas, config: GraphConfig) -> None:
        self._canvas = canvas
        self._config = config

    @property
    def canvas(self) -> Canvas:
        return self._canvas

    def apply_geometry(self, geometry: GeometryMapping) -> None:
        self._canvas.pixel_ratio = geometry.pixel_ratio

    def phase_color(self, phase: Phase) -> RGB:
        return self._config.crash_color if phase is Phase.CRASHED else self._config.grow_color

    # -- frame -------------------------------------------------------------

    def draw_frame(self, view: FrameView) -> None:
        """Everything except particles, in fixed back-to-front order."""
        cfg = self._config
        self._canvas.clear(cfg.background_color)
        if cfg.show_grid:
            self.draw_grid(view.geometry)

        if view.phase is Phase.CRASHED and view.crash_ms is not None:
            coords = collapse(
                view.points, view.geometry, view.now_ms - view.crash_ms,
                cfg.collapse_ms, cfg.collapse_easing,
            )
        else:
            coords = [(p.x, p.y) for p in view.points]

        color = self.phase_color(view.phase)
        if len(coords) >= 2:
            path = bezier.smooth_path(coords)
            self.draw_fill(path, view.geometry, color)
            self._canvas.polyline(path, color, cfg.line_width)
        if coords and view.phase is not Phase.CRASHED:
            self.draw_marker(coords[-1], color, view.now_ms)
        self.draw_trail(coords, color)
        self.draw_label(view.multiplier, view.geometry, color)

    def draw_idle(self, geometry: GeometryMapping) -> None:
        self._canvas.clear(self._config.background_color)
        if self._config.show_grid:
            self.draw_grid(geometry)
        self.draw_label(1.0, geometry, self._config.grow_color)

    # -- layers ------------------------------------------------------------

    def draw_grid(self, geometry: GeometryMapping) -> None:
        """Grid lines and value markers, rendered once per geometry and reused."""
        self._canvas.cached_layer(("grid", geometry), lambda canvas: self._render_grid(canvas, geometry))

    def _render_grid(self, canvas: Canvas, geometry: GeometryMapping) -> None:
        w, h = geometry.display_width, geometry.display_height
        for i in range(GRID_COLUMNS + 1):
            x = w / GRID_COLUMNS * i
            canvas.polyline([(x, 0.0), (x, h)], GRID_COLOR, 1, GRID_ALPHA)
        for i in range(GRID_ROWS + 1):
            y = h / GRID_ROWS * i
            canvas.polyline([(0.0, y), (w, y)], GRID_COLOR, 1, GRID_ALPHA)

        max_m = self._config.max_multiplier
        for mult in MARKERS:
            if mult > max_m:
                continue
            y = geometry.y_for(mult, max_m)
            canvas.dashed_line((geometry.left, y), (geometry.right, y), GRID_COLOR, 1, 5, MARKER_ALPHA)
            canvas.text(
                f"{mult:g}x", (w - 4, y), GRID_COLOR, 12, align="right", alpha=MARKER_LABEL_ALPHA,
            )

    def draw_fill(self, path: Sequence[Vec], geometry: GeometryMapping, color: RGB) -> None:
        floor = geometry.bottom
        polygon = [(path[0][0], floor), *path, (path[-1][0], floor)]
        self._canvas.fill_gradient(polygon, color, FILL_TOP_ALPHA, 0.0)

    def draw_marker(self, head: Vec, color: RGB, now_ms: float) -> None:
        wave = math.sin(now_ms / PULSE_PERIOD_MS)
        radius = MARKER_RADIUS + wave * PULSE_AMPLITUDE
        glow = self._config.glow_radius * (1 + wave * GLOW_PULSE)
        self._canvas.glow(head, glow, color, 0.5)
        self._canvas.circle(head, radius, color)
        self._canvas.circle(head, radius * 0.4, WHITE)

    def draw_trail(self, coords: Sequence[Vec], color: RGB) -> None:
        n = self._config.trail_length
        tail = list(coords[-n:]) if n > 0 else []
        count = len(tail)
        for k, pt in enumerate(tail):
            recency = (k + 1) / count
            self._canvas.circle(pt, TRAIL_SIZE * recency, color, TRAIL_ALPHA * recency)

    def draw_label(self, multiplier: float, geometry: GeometryMapping, color: RGB) -> None:
        center = (geometry.left + geometry.graph_width / 2, geometry.top + geometry.graph_height / 3)
        self._canvas.text(format_multiplier(multiplier), center, color, LABEL_SIZE, glow=color)

    def draw_particles(self, particles: Sequence[Particle]) -> None:
        color = self._config.crash_color
        for p in particles:
            self._canvas.circle(p.position, p.size * p.life, color, p.life)
