"""Drawing surface abstraction and its pygame implementation.

All coordinates are logical pixels. The canvas scales them by its pixel
ratio when rasterising, so a high-density display gets a sharper image of
the same layout.
"""
from __future__ import annotations

import math
from typing import Callable, Hashable, Protocol, Sequence

import pygame

from crashgraph.types import RGB, SurfaceNotFoundError, Vec

GLOW_STEPS = 6
LAYER_CACHE_SIZE = 4
TEXT_GLOW_OFFSETS = ((-2, 0), (2, 0), (0, -2), (0, 2), (-1, -1), (1, 1), (-1, 1), (1, -1))


class Canvas(Protocol):
    """2D drawing primitives used by the renderer."""

    pixel_ratio: float

    def size(self) -> tuple[float, float]: ...

    def clear(self, color: RGB) -> None: ...

    def polyline(self, points: Sequence[Vec], color: RGB, width: float, alpha: float = 1.0) -> None: ...

    def dashed_line(
        self, start: Vec, end: Vec, color: RGB, width: float, dash: float, alpha: float = 1.0,
    ) -> None: ...

    def fill_gradient(
        self, points: Sequence[Vec], color: RGB, top_alpha: float, bottom_alpha: float,
    ) -> None: ...

    def circle(self, center: Vec, radius: float, color: RGB, alpha: float = 1.0) -> None: ...

    def glow(self, center: Vec, radius: float, color: RGB, alpha: float = 1.0) -> None: ...

    def text(
        self, text: str, position: Vec, color: RGB, size: int,
        align: str = "center", glow: RGB | None = None, alpha: float = 1.0,
    ) -> None: ...

    def cached_layer(self, key: Hashable, draw: Callable[[Canvas], None]) -> None:
        """Blit a transparent overlay that ``draw`` renders once per ``key``."""
        ...


def _alpha(value: float) -> int:
    return max(0, min(255, round(value * 255)))


class PygameCanvas:
    """Canvas backed by a ``pygame.Surface``."""

    def __init__(self, surface: pygame.Surface, pixel_ratio: float = 1.0) -> None:
        if surface is None:
            raise SurfaceNotFoundError("PygameCanvas needs a pygame.Surface")
        self._surface = surface
        self.pixel_ratio = pixel_ratio
        self._fonts: dict[int, pygame.font.Font] = {}
        self._layers: dict[Hashable, pygame.Surface] = {}

    @classmethod
    def from_display(cls, pixel_ratio: float = 1.0) -> PygameCanvas:
        """Wrap the current display surface. Raises SurfaceNotFoundError if none is set."""
        surface = pygame.display.get_surface() if pygame.display.get_init() else None
        if surface is None:
            raise SurfaceNotFoundError("No pygame display surface; call pygame.display.set_mode() first")
        return cls(surface, pixel_ratio)

    @property
    def surface(self) -> pygame.Surface:
        return self._surface

    def retarget(self, surface: pygame.Surface) -> None:
        """Switch to a new surface, e.g. after the display was resized."""
        self._surface = surface

    def size(self) -> tuple[float, float]:
        w, h = self._surface.get_size()
        return w / self.pixel_ratio, h / self.pixel_ratio

    def _px(self, p: Vec) -> tuple[int, int]:
        return round(p[0] * self.pixel_ratio), round(p[1] * self.pixel_ratio)

    def _len(self, value: float) -> int:
        return max(1, round(value * self.pixel_ratio))

    def clear(self, color: RGB) -> None:
        self._surface.fill(color)

    def _direct(self, alpha: float) -> bool:
        """True when ``alpha`` can be written straight onto the target surface."""
        return alpha >= 1.0 or bool(self._surface.get_flags() & pygame.SRCALPHA)

    def _overlay(self) -> pygame.Surface:
        return pygame.Surface(self._surface.get_size(), pygame.SRCALPHA)

    def polyline(self, points: Sequence[Vec], color: RGB, width: float, alpha: float = 1.0) -> None:
        if len(points) < 2:
            return
        pts = [self._px(p) for p in points]
        w = self._len(width)
        rgba = (*color, _alpha(alpha))
        if self._direct(alpha):
            pygame.draw.lines(self._surface, rgba, False, pts, w)
            return
        layer = self._overlay()
        pygame.draw.lines(layer, rgba, False, pts, w)
        self._surface.blit(layer, (0, 0))

    def dashed_line(
        self, start: Vec, end: Vec, color: RGB, width: float, dash: float, alpha: float = 1.0,
    ) -> None:
        """All dashes of one line share a single translucent layer."""
        length = math.hypot(end[0] - start[0], end[1] - start[1])
        if length == 0 or dash <= 0:
            return
        dx = (end[0] - start[0]) / length
        dy = (end[1] - start[1]) / length
        target = self._surface if self._direct(alpha) else self._overlay()
        rgba = (*color, _alpha(alpha))
        w = self._len(width)
        pos = 0.0
        while pos < length:
            stop = min(pos + dash, length)
            pygame.draw.line(
                target, rgba,
                self._px((start[0] + dx * pos, start[1] + dy * pos)),
                self._px((start[0] + dx * stop, start[1] + dy * stop)),
                w,
            )
            pos += dash * 2
        if target is not self._surface:
            self._surface.blit(target, (0, 0))

    def cached_layer(self, key: Hashable, draw: Callable[[Canvas], None]) -> None:
        """Blit a transparent overlay that ``draw`` renders once per ``key``.

        The overlay is rebuilt when the key changes or the surface is resized.
        Only the most recent ``LAYER_CACHE_SIZE`` overlays are kept.
        """
        layer = self._layers.get(key)
        if layer is None or layer.get_size() != self._surface.get_size():
            layer = self._overlay()
            target = self._surface
            self._surface = layer
            try:
                draw(self)
            finally:
                self._surface = target
            self._layers.pop(key, None)
            self._layers[key] = layer
            while len(self._layers) > LAYER_CACHE_SIZE:
                del self._layers[next(iter(self._layers))]
        self._surface.blit(layer, (0, 0))

    def fill_gradient(
        self, points: Sequence[Vec], color: RGB, top_alpha: float, bottom_alpha: float,
    ) -> None:
        if len(points) < 3:
            return
        pts = [self._px(p) for p in points]
        min_x = min(p[0] for p in pts)
        min_y = min(p[1] for p in pts)
        w = max(p[0] for p in pts) - min_x + 1
        h = max(p[1] for p in pts) - min_y + 1
        gradient = pygame.Surface((w, h), pygame.SRCALPHA)
        for row in range(h):
            t = row / max(h - 1, 1)
            a = top_alpha + (bottom_alpha - top_alpha) * t
            pygame.draw.line(gradient, (*color, _alpha(a)), (0, row), (w - 1, row))
        mask = pygame.Surface((w, h), pygame.SRCALPHA)
        pygame.draw.polygon(mask, (255, 255, 255, 255), [(x - min_x, y - min_y) for x, y in pts])
        gradient.blit(mask, (0, 0), special_flags=pygame.BLEND_RGBA_MULT)
        self._surface.blit(gradient, (min_x, min_y))

    def circle(self, center: Vec, radius: float, color: RGB, alpha: float = 1.0) -> None:
        if radius <= 0:
            return
        r = self._len(radius)
        if self._direct(alpha):
            pygame.draw.circle(self._surface, (*color, _alpha(alpha)), self._px(center), r)
            return
        dot = pygame.Surface((r * 2 + 1, r * 2 + 1), pygame.SRCALPHA)
        pygame.draw.circle(dot, (*color, _alpha(alpha)), (r, r), r)
        cx, cy = self._px(center)
        self._surface.blit(dot, (cx - r, cy - r))

    def glow(self, center: Vec, radius: float, color: RGB, alpha: float = 1.0) -> None:
        """Soft radial falloff from ``alpha`` at the centre to transparent at ``radius``."""
        if radius <= 0:
            return
        r = self._len(radius)
        halo = pygame.Surface((r * 2 + 1, r * 2 + 1), pygame.SRCALPHA)
        for step in range(GLOW_STEPS, 0, -1):
            ring = r * step / GLOW_STEPS
            a = alpha * (1 - (step - 1) / GLOW_STEPS) / GLOW_STEPS * 2
            pygame.draw.circle(halo, (*color, _alpha(min(a, 1.0))), (r, r), max(1, round(ring)))
        cx, cy = self._px(center)
        self._surface.blit(halo, (cx - r, cy - r))

    def _font(self, size: int) -> pygame.font.Font:
        px = self._len(size)
        font = self._fonts.get(px)
        if font is None:
            if not pygame.font.get_init():
                pygame.font.init()
            font = pygame.font.Font(None, px)
            self._fonts[px] = font
        return font

    def text(
        self, text: str, position: Vec, color: RGB, size: int,
        align: str = "center", glow: RGB | None = None, alpha: float = 1.0,
    ) -> None:
        font = self._font(size)
        x, y = self._px(position)

        def _blit(img: pygame.Surface, dx: int, dy: int) -> None:
            rect = img.get_rect()
            if align == "right":
                rect.midright = (x + dx, y + dy)
            elif align == "left":
                rect.midleft = (x + dx, y + dy)
            else:
                rect.center = (x + dx, y + dy)
            self._surface.blit(img, rect)

        if glow is not None:
            halo = font.render(text, True, glow)
            halo.set_alpha(_alpha(alpha * 0.35))
            spread = self._len(2) // 2 or 1
            for dx, dy in TEXT_GLOW_OFFSETS:
                _blit(halo, dx * spread, dy * spread)
        img = font.render(text, True, color)
        if alpha < 1.0:
            img.set_alpha(_alpha(alpha))
        _blit(img, 0, 0)
