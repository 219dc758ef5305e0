"""Crash Graph demo: simulated rounds in a resizable pygame window.

Controls:
  Space   Crash the current round now
  R       Reset and start a new round
  E       Toggle external mode (values pushed by a fake server feed)
  Esc     Quit

Run with ``python examples/demo.py [--debug]``.
"""
from __future__ import annotations

import json
import logging
import math
import random
import sys

import pygame

from crashgraph import (
    CrashGraph,
    FrameScheduler,
    GraphConfig,
    PygameCanvas,
    RoundEventHandler,
    setup_logging,
)

SCREEN_W = 900
SCREEN_H = 500
FPS = 60
WAIT_MS = 3000
HOUSE_EDGE = 0.5

logger = logging.getLogger("crashgraph.demo")


def roll_crash_point(rng: random.Random) -> float:
    """Exponentially distributed crash point, never below 1.0."""
    return 1.0 + (-math.log(1.0 - rng.random()) / HOUSE_EDGE)


class Demo:
    """Fake round server feeding a CrashGraph through RoundEventHandler."""

    def __init__(self, screen: pygame.Surface, external: bool) -> None:
        self.rng = random.Random()
        self.scheduler = FrameScheduler(fps=FPS)
        self.canvas = PygameCanvas(screen)
        self.external = external
        self.graph = CrashGraph(
            self.canvas, GraphConfig(external=external), scheduler=self.scheduler,
        )
        self.events = RoundEventHandler(self.graph)
        self.graph.signals.subscribe("crash_complete", self._on_crash_complete)
        self.crash_point = 1.0
        self.round_start_ms = 0.0
        self.next_round_handle: int | None = None

    def _send(self, message: dict) -> None:
        # Round-trip through JSON like a socket message would.
        self.events.dispatch(json.dumps(message))

    def _on_crash_complete(self, signal: str, data: dict) -> None:
        logger.info("Explosion finished at %.2fx", data["multiplier"])

    def new_round(self) -> None:
        self.scheduler.cancel(self.next_round_handle)
        self.next_round_handle = None
        self._send({"event": "game_starting", "countdown": 0})
        self.crash_point = roll_crash_point(self.rng)
        self.round_start_ms = self.scheduler.now()
        logger.debug("Next crash point %.2fx", self.crash_point)
        self._send({"event": "game_started"})

    def crash_now(self) -> None:
        if self.graph.is_running:
            self._send({"event": "game_crashed", "crashPoint": self.graph.current_multiplier})
            self._schedule_next_round()

    def _schedule_next_round(self) -> None:
        self.next_round_handle = self.scheduler.call_later(WAIT_MS, self.new_round)

    def update(self) -> None:
        """Advance the fake server by one frame."""
        if not self.graph.is_running:
            return
        elapsed = self.scheduler.now() - self.round_start_ms
        server_value = (1.0 + self.graph.config.growth_rate) ** elapsed
        if server_value >= self.crash_point:
            self._send({"event": "game_crashed", "crashPoint": round(self.crash_point, 2)})
            self._schedule_next_round()
        elif self.external:
            self._send({"event": "multiplier", "multiplier": server_value})


def main() -> None:
    setup_logging(logging.DEBUG if "--debug" in sys.argv else logging.INFO)
    pygame.init()
    screen = pygame.display.set_mode((SCREEN_W, SCREEN_H), pygame.RESIZABLE)
    pygame.display.set_caption("Crash Graph demo")
    clock = pygame.time.Clock()

    demo = Demo(screen, external=False)
    demo.new_round()

    running = True
    while running:
        clock.tick(FPS)

        # --- Events ---
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False

            elif event.type == pygame.VIDEORESIZE:
                screen = pygame.display.set_mode(event.size, pygame.RESIZABLE)
                demo.canvas.retarget(screen)
                demo.graph.resize(*event.size)

            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    running = False
                elif event.key == pygame.K_SPACE:
                    demo.crash_now()
                elif event.key == pygame.K_r:
                    demo.new_round()
                elif event.key == pygame.K_e:
                    demo.graph.destroy()
                    demo.scheduler.cancel(demo.next_round_handle)
                    demo = Demo(screen, external=not demo.external)
                    demo.new_round()
                    logger.info("External mode %s", "on" if demo.external else "off")

        # --- Simulation and drawing ---
        demo.update()
        demo.scheduler.pump()
        pygame.display.flip()

    demo.graph.destroy()
    pygame.quit()


if __name__ == "__main__":
    main()
