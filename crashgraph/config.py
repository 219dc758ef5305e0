"""Graph configuration dataclasses."""
from __future__ import annotations

import math
from dataclasses import dataclass, field, fields
from typing import Any, Mapping, Sequence

from crashgraph.easing import EASINGS
from crashgraph.types import RGB

MIN_SMOOTHING = 0.01
MAX_SMOOTHING = 1.0

# camelCase option names accepted for compatibility with existing callers.
_ALIASES = {
    "baseGrowth": "growth_rate",
    "growthRate": "growth_rate",
    "maxPoints": "max_points",
    "trailLength": "trail_length",
    "particleCount": "particle_count",
    "growColor": "grow_color",
    "arrowColor": "grow_color",
    "crashColor": "crash_color",
    "glowSize": "glow_radius",
    "lineWidth": "line_width",
    "smoothingFactor": "smoothing",
    "externalMode": "external",
    "maxMultiplier": "max_multiplier",
    "gridLines": "show_grid",
    "backgroundColor": "background_color",
    "collapseDuration": "collapse_ms",
    "collapseEasing": "collapse_easing",
}


def parse_color(value: str | Sequence[int]) -> RGB:
    """Normalise ``#rgb``, ``#rrggbb`` or an RGB sequence to an RGB tuple."""
    if not isinstance(value, str):
        if (
            not isinstance(value, Sequence)
            or len(value) != 3
            or not all(isinstance(c, int) and not isinstance(c, bool) and 0 <= c <= 255 for c in value)
        ):
            raise ValueError(f"Invalid RGB colour: {value!r}")
        return (value[0], value[1], value[2])
    text = value.strip().lstrip("#")
    if len(text) == 3:
        text = "".join(c * 2 for c in text)
    if len(text) != 6:
        raise ValueError(f"Invalid colour: {value!r}")
    try:
        return (int(text[0:2], 16), int(text[2:4], 16), int(text[4:6], 16))
    except ValueError:
        raise ValueError(f"Invalid colour: {value!r}") from None


@dataclass(frozen=True)
class Padding:
    """Insets of the content area inside the viewport, in logical pixels."""

    top: float = 20.0
    right: float = 40.0
    bottom: float = 30.0
    left: float = 20.0

    def __post_init__(self) -> None:
        for name in ("top", "right", "bottom", "left"):
            if getattr(self, name) < 0:
                raise ValueError(f"padding.{name} must be non-negative")


@dataclass(frozen=True)
class GraphConfig:
    """Immutable configuration for one :class:`~crashgraph.engine.CrashGraph`.

    Attributes:
        growth_rate: Per-millisecond exponential base for internal growth.
        max_points: Capacity of the point buffer.
        trail_length: Number of head points drawn as a fading trail.
        particle_count: Particles spawned by the crash explosion.
        grow_color: Curve colour while running.
        crash_color: Curve and particle colour after the crash.
        glow_radius: Radius of the glow around the head marker.
        line_width: Curve stroke width in logical pixels.
        smoothing: External-mode smoothing factor, clamped to [0.01, 1.0].
        external: Drive the multiplier from pushed values instead of time.
        max_multiplier: Display ceiling; the curve saturates beyond it.
        show_grid: Draw the background grid and value markers.
        background_color: Surface clear colour.
        padding: Content-area insets.
        collapse_ms: Duration of the post-crash collapse animation.
        collapse_easing: Easing curve of the collapse, a key of ``EASINGS``.
        resize_debounce_ms: Minimum interval between resize recomputations.
        fps: Nominal frame rate of the scheduler.
    """

    growth_rate: float = 0.0001
    max_points: int = 120
    trail_length: int = 8
    particle_count: int = 35
    grow_color: RGB = (0, 255, 136)
    crash_color: RGB = (255, 51, 102)
    glow_radius: float = 20.0
    line_width: float = 3.0
    smoothing: float = 0.15
    external: bool = False
    max_multiplier: float = 20.0
    show_grid: bool = True
    background_color: RGB = (26, 26, 46)
    padding: Padding = field(default_factory=Padding)
    collapse_ms: float = 1000.0
    collapse_easing: str = "ease_out_cubic"
    resize_debounce_ms: float = 16.0
    fps: int = 60

    def __post_init__(self) -> None:
        for name in (
            "growth_rate", "smoothing", "max_multiplier", "collapse_ms",
            "line_width", "glow_radius", "resize_debounce_ms",
        ):
            if not math.isfinite(float(getattr(self, name))):
                raise ValueError(f"{name} must be finite")
        if self.growth_rate <= 0:
            raise ValueError("growth_rate must be positive")
        for name in ("max_points", "particle_count", "fps"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        if self.trail_length < 0:
            raise ValueError("trail_length must be non-negative")
        if self.max_multiplier <= 1.0:
            raise ValueError("max_multiplier must be greater than 1.0")
        if self.collapse_ms <= 0:
            raise ValueError("collapse_ms must be positive")
        if self.line_width <= 0 or self.glow_radius < 0:
            raise ValueError("line_width must be positive and glow_radius non-negative")
        if self.resize_debounce_ms < 0:
            raise ValueError("resize_debounce_ms must be non-negative")
        if self.collapse_easing not in EASINGS:
            raise ValueError(f"Unknown collapse_easing {self.collapse_easing!r}")

        smoothing = min(max(float(self.smoothing), MIN_SMOOTHING), MAX_SMOOTHING)
        object.__setattr__(self, "smoothing", smoothing)
        for name in ("grow_color", "crash_color", "background_color"):
            object.__setattr__(self, name, parse_color(getattr(self, name)))
        if isinstance(self.padding, Mapping):
            object.__setattr__(self, "padding", Padding(**self.padding))

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> GraphConfig:
        """Build a config from a mapping of snake_case or camelCase options.

        Raises ValueError on unrecognised keys.
        """
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in options.items():
            name = _ALIASES.get(key, key)
            if name not in known:
                raise ValueError(f"Unknown graph option {key!r}")
            kwargs[name] = value
        return cls(**kwargs)
