"""crashgraph - Animated crash-game multiplier curve for pygame surfaces."""

from crashgraph.canvas import Canvas, PygameCanvas
from crashgraph.config import GraphConfig, Padding
from crashgraph.engine import CrashGraph
from crashgraph.events import RoundEventHandler
from crashgraph.geometry import GeometryMapping, rescale_points
from crashgraph.logging_config import setup_logging
from crashgraph.renderer import format_multiplier
from crashgraph.scheduler import FrameScheduler
from crashgraph.signals import SignalBus
from crashgraph.types import FrameContext, Particle, Phase, Point, SurfaceNotFoundError

__all__ = [
    "CrashGraph",
    "GraphConfig",
    "Padding",
    "Canvas",
    "PygameCanvas",
    "FrameScheduler",
    "FrameContext",
    "SignalBus",
    "RoundEventHandler",
    "GeometryMapping",
    "rescale_points",
    "format_multiplier",
    "setup_logging",
    "Phase",
    "Point",
    "Particle",
    "SurfaceNotFoundError",
]
