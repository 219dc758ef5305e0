"""Crash explosion particles."""
from __future__ import annotations

import math
import random

from crashgraph import vec
from crashgraph.types import Particle, Vec

GRAVITY = 0.2
DRAG = 0.98
MIN_SPEED = 2.0
SPEED_RANGE = 4.0
MIN_SIZE = 2.0
SIZE_RANGE = 4.0
MIN_DECAY = 0.015
DECAY_RANGE = 0.01


class ParticleSystem:
    """A shrinking set of particles integrated once per frame.

    Units are logical pixels per frame; gravity pulls toward +y (down).
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng if rng is not None else random.Random()
        self._particles: list[Particle] = []

    @property
    def particles(self) -> tuple[Particle, ...]:
        return tuple(self._particles)

    def __len__(self) -> int:
        return len(self._particles)

    def spawn(self, origin: Vec, count: int) -> None:
        """Replace the current set with ``count`` particles radiating from ``origin``."""
        rng = self._rng
        self._particles = []
        for i in range(count):
            angle = math.tau * i / count
            speed = MIN_SPEED + rng.random() * SPEED_RANGE
            self._particles.append(Particle(
                position=origin,
                velocity=vec.from_polar(angle, speed),
                life=1.0,
                size=MIN_SIZE + rng.random() * SIZE_RANGE,
                decay=MIN_DECAY + rng.random() * DECAY_RANGE,
            ))

    def step(self) -> None:
        """Integrate one frame and drop particles whose life ran out."""
        for p in self._particles:
            p.position = vec.add(p.position, p.velocity)
            vx, vy = p.velocity
            p.velocity = vec.scale((vx, vy + GRAVITY), DRAG)
            p.life = max(p.life - p.decay, 0.0)
        self._particles = [p for p in self._particles if p.life > 0]

    def clear(self) -> None:
        self._particles = []
