"""CrashGraph - round lifecycle, frame loop, and resize handling."""
from __future__ import annotations

import logging
import math
import random
from typing import Any

from crashgraph.canvas import Canvas
from crashgraph.config import GraphConfig
from crashgraph.geometry import GeometryMapping
from crashgraph.particles import ParticleSystem
from crashgraph.points import PointBuffer
from crashgraph.renderer import FrameView, Renderer
from crashgraph.scheduler import FrameScheduler
from crashgraph.signals import (
    CRASH_COMPLETE,
    ROUND_CRASHED,
    ROUND_RESET,
    ROUND_STARTED,
    ROUND_STOPPED,
    SignalBus,
)
from crashgraph.types import FrameContext, Particle, Phase, Point, SurfaceNotFoundError
from crashgraph.values import GrowthSource, SmoothedSource

logger = logging.getLogger(__name__)


def _finite(value: Any) -> float | None:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


class CrashGraph:
    """Animated multiplier curve for one viewport.

    Lifecycle: Idle -> ``start()`` -> Running -> ``crash()`` -> Crashed.
    Frames keep being scheduled while running or crashed (the collapse and
    explosion play out after growth stops) until ``stop()`` or ``reset()``.
    Every public method runs to completion on the caller's thread; redundant
    calls are no-ops and bad values are clamped or ignored.
    """

    def __init__(
        self,
        canvas: Canvas | None,
        config: GraphConfig | None = None,
        scheduler: FrameScheduler | None = None,
        rng: random.Random | None = None,
        signals: SignalBus | None = None,
    ) -> None:
        if canvas is None:
            raise SurfaceNotFoundError("CrashGraph needs a canvas to draw on")
        self._config = config if config is not None else GraphConfig()
        cfg = self._config
        self._scheduler = scheduler if scheduler is not None else FrameScheduler(fps=cfg.fps)
        self._signals = signals if signals is not None else SignalBus()
        self._renderer = Renderer(canvas, cfg)

        width, height = canvas.size()
        self._geometry = GeometryMapping.for_viewport(width, height, cfg.padding, canvas.pixel_ratio)
        self._renderer.apply_geometry(self._geometry)

        self._points = PointBuffer(cfg.max_points)
        self._particles = ParticleSystem(rng)
        self._source: GrowthSource | SmoothedSource
        if cfg.external:
            self._source = SmoothedSource(cfg.smoothing)
        else:
            self._source = GrowthSource(cfg.growth_rate)

        self._running = False
        self._crashed = False
        self._destroyed = False
        self._crash_multiplier: float | None = None
        self._start_ms: float | None = None
        self._crash_ms: float | None = None
        self._crash_complete_sent = False

        self._frame_handle: int | None = None
        self._resize_handle: int | None = None
        self._pending_size: tuple[float, float, float] | None = None
        self._last_resize_ms: float | None = None

    # -- read surface ------------------------------------------------------

    @property
    def config(self) -> GraphConfig:
        return self._config

    @property
    def scheduler(self) -> FrameScheduler:
        return self._scheduler

    @property
    def signals(self) -> SignalBus:
        return self._signals

    @property
    def geometry(self) -> GeometryMapping:
        return self._geometry

    @property
    def phase(self) -> Phase:
        if self._crashed:
            return Phase.CRASHED
        if self._running:
            return Phase.RUNNING
        return Phase.IDLE

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_crashed(self) -> bool:
        return self._crashed

    @property
    def is_destroyed(self) -> bool:
        return self._destroyed

    @property
    def current_multiplier(self) -> float:
        return self._source.current

    @property
    def target_multiplier(self) -> float | None:
        if isinstance(self._source, SmoothedSource):
            return self._source.target
        return None

    @property
    def crash_multiplier(self) -> float | None:
        return self._crash_multiplier

    @property
    def points(self) -> tuple[Point, ...]:
        return self._points.snapshot()

    @property
    def particles(self) -> tuple[Particle, ...]:
        return self._particles.particles

    @property
    def particle_count(self) -> int:
        return len(self._particles)

    @property
    def frame_pending(self) -> bool:
        return self._frame_handle is not None

    # -- lifecycle ---------------------------------------------------------

    def start(self, start_ms: float | None = None) -> None:
        """Begin a new round. No-op while already running."""
        if self._destroyed:
            logger.debug("start() ignored: graph destroyed")
            return
        if self._running:
            return
        self._cancel_frame()
        self._clear_round()
        self._start_ms = self._scheduler.now() if start_ms is None else start_ms
        self._running = True
        self._points.push(self._geometry.origin())
        logger.info("Round started")
        self._signals.publish(ROUND_STARTED, start_ms=self._start_ms)
        self._request_frame()

    def set_external_multiplier(self, value: Any, immediate: bool = False) -> None:
        """Push a new target value. Ignored outside external mode and once crashed."""
        if not self._config.external or self._destroyed:
            logger.debug("set_external_multiplier() ignored: external mode disabled")
            return
        if self._crashed:
            return
        number = _finite(value)
        if number is None:
            logger.debug("Ignoring non-finite external multiplier %r", value)
            return
        if isinstance(self._source, SmoothedSource):
            self._source.set_target(number, immediate=immediate)

    def crash(self, multiplier: Any = None) -> None:
        """Freeze the round at ``multiplier`` and play the collapse and explosion."""
        if self._crashed or self._destroyed:
            return
        if not self._running:
            logger.debug("crash() ignored: no round running")
            return
        value = _finite(multiplier) if multiplier is not None else None
        if value is None:
            value = self._source.current
        value = max(value, 1.0)

        now = self._scheduler.now()
        self._crash_multiplier = value
        self._crash_ms = now
        self._crashed = True
        self._running = False
        self._source.current = value
        if isinstance(self._source, SmoothedSource):
            self._source.target = value

        head = self._points.head
        if head is None or value >= head.multiplier:
            elapsed = now - (self._start_ms if self._start_ms is not None else now)
            head = self._geometry.map_point(value, elapsed, self._config.max_multiplier)
            self._points.sample(head)
        self._particles.spawn((head.x, head.y), self._config.particle_count)

        logger.info("Crashed at %.2fx", value)
        self._signals.publish(ROUND_CRASHED, multiplier=value)
        if self._frame_handle is None:
            self._request_frame()

    def stop(self) -> None:
        """Cancel the pending frame and stop running. Buffers are kept."""
        was_active = self._running or self._frame_handle is not None
        self._cancel_frame()
        self._running = False
        if was_active:
            logger.debug("Animation stopped")
            self._signals.publish(ROUND_STOPPED)
        self._signals.flush()

    def reset(self) -> None:
        """Stop and return to the idle state with empty buffers."""
        self.stop()
        self._clear_round()
        self._start_ms = None
        if not self._destroyed:
            self._renderer.draw_idle(self._geometry)
        logger.debug("Graph reset")
        self._signals.publish(ROUND_RESET)
        self._signals.flush()

    def destroy(self) -> None:
        """Cancel all scheduling for good and drop subscribers."""
        if self._destroyed:
            return
        self.stop()
        self._scheduler.cancel(self._resize_handle)
        self._resize_handle = None
        self._pending_size = None
        self._destroyed = True
        self._signals.unsubscribe_all()
        logger.debug("Graph destroyed")

    def _clear_round(self) -> None:
        self._points.clear()
        self._particles.clear()
        self._source.reset()
        self._crashed = False
        self._crash_multiplier = None
        self._crash_ms = None
        self._crash_complete_sent = False

    # -- frame loop --------------------------------------------------------

    def _request_frame(self) -> None:
        if self._frame_handle is None and not self._destroyed:
            self._frame_handle = self._scheduler.request_frame(self._tick)

    def _cancel_frame(self) -> None:
        self._scheduler.cancel(self._frame_handle)
        self._frame_handle = None

    def _view(self, now_ms: float) -> FrameView:
        return FrameView(
            phase=self.phase,
            multiplier=self._source.current,
            points=self._points.snapshot(),
            geometry=self._geometry,
            now_ms=now_ms,
            crash_ms=self._crash_ms,
        )

    def _tick(self, ctx: FrameContext) -> None:
        self._frame_handle = None
        if not (self._running or self._crashed):
            return
        now = ctx.now_ms

        if self._running and self._start_ms is not None:
            elapsed = max(now - self._start_ms, 0.0)
            multiplier = self._source.update(elapsed)
            self._points.sample(self._geometry.map_point(multiplier, elapsed, self._config.max_multiplier))

        self._renderer.draw_frame(self._view(now))

        if self._crashed:
            self._particles.step()
            self._renderer.draw_particles(self._particles.particles)
            self._check_crash_complete(now)

        self._signals.flush()
        if self._running or self._crashed:
            self._request_frame()

    def _check_crash_complete(self, now_ms: float) -> None:
        if self._crash_complete_sent or self._crash_ms is None:
            return
        if now_ms - self._crash_ms >= self._config.collapse_ms and not self._particles:
            self._crash_complete_sent = True
            self._signals.publish(CRASH_COMPLETE, multiplier=self._crash_multiplier)

    # -- resize ------------------------------------------------------------

    def resize(self, width: float, height: float, pixel_ratio: float | None = None) -> None:
        """Viewport size changed (logical pixels). Recomputation is debounced."""
        if self._destroyed:
            return
        ratio = pixel_ratio if pixel_ratio is not None else self._geometry.pixel_ratio
        self._pending_size = (float(width), float(height), ratio)
        if self._resize_handle is not None:
            return
        now = self._scheduler.now()
        since = math.inf if self._last_resize_ms is None else now - self._last_resize_ms
        wait = self._config.resize_debounce_ms - since
        if wait <= 0:
            self._apply_resize()
        else:
            self._resize_handle = self._scheduler.call_later(wait, self._apply_resize)

    def _apply_resize(self) -> None:
        self._resize_handle = None
        if self._pending_size is None or self._destroyed:
            return
        width, height, ratio = self._pending_size
        self._pending_size = None
        self._last_resize_ms = self._scheduler.now()

        new = GeometryMapping.for_viewport(width, height, self._config.padding, ratio)
        if new == self._geometry:
            return
        old = self._geometry
        self._points.rescale(old, new)
        self._geometry = new
        self._renderer.apply_geometry(new)
        logger.debug(
            "Resized content area %.0fx%.0f -> %.0fx%.0f",
            old.graph_width, old.graph_height, new.graph_width, new.graph_height,
        )
        if self._frame_handle is None:
            self._redraw()

    def _redraw(self) -> None:
        if self._points:
            self._renderer.draw_frame(self._view(self._scheduler.now()))
            if self._crashed:
                self._renderer.draw_particles(self._particles.particles)
        else:
            self._renderer.draw_idle(self._geometry)
