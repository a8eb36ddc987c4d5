# simulation.py
"""
Handles the per-frame particle lifecycle of one canvas.

This module defines the ParticlePool class, which keeps the population at the
configured quantity, advances every particle by one tick, draws trails and
registry markers onto a drawing surface, and retires particles whose lifespan
ran out or which drifted beyond the canvas threshold.
"""
import logging
import time
from typing import Any, Callable, List, Protocol, Sequence, Tuple

import numpy as np

from configuration import CanvasConfig, IdentifierConfig, ParticleSpec
from constants import FPS, LOG_THROTTLE_FRAMES, MARKER_LABEL_OFFSET
from geometry import Point
from particle import Particle
from registry import PointRegistry

# --- Data Contracts ---
#
# class ParticlePool:
#   - __init__(self, spec, canvas, registry, surface, rng, ...):
#     - Inputs:
#       - spec: ParticleSpec of the session.
#       - canvas: CanvasConfig, for bounds and background.
#       - registry: PointRegistry whose live lists particles read.
#       - surface: anything implementing DrawingSurface.
#       - rng: numpy Generator passed on to every particle.
#
#   - tick(self, dt: float) -> None:
#     - Inputs:
#       - dt: elapsed seconds since the previous tick.
#     - Side Effects: Draws one frame, creates and retires particles.
#     - Invariants:
#       - len(self.particles) <= spec.quantity after every tick.
#       - No particle with lifespan <= 0 or outside the threshold rectangle
#         survives the tick in which that happened.


class DrawingSurface(Protocol):
    def fill(self, color: Any) -> None: ...

    def line(self, color: Any, start: Point, end: Point, width: float) -> None: ...

    def rect(self, color: Any, x: float, y: float, size: float) -> None: ...

    def text(self, color: Any, text: str, x: float, y: float) -> None: ...


class ParticlePool:
    """
    Owns the live particles of one canvas and renders them frame by frame.
    """
    def __init__(
        self,
        spec: ParticleSpec,
        canvas: CanvasConfig,
        registry: PointRegistry,
        surface: DrawingSurface,
        rng: np.random.Generator,
        spawner_marker: IdentifierConfig = IdentifierConfig(),
        target_marker: IdentifierConfig = IdentifierConfig(),
        clock: Callable[[], float] = time.time,
    ):
        self.spec = spec
        self.canvas = canvas
        self.registry = registry
        self.surface = surface
        self.rng = rng
        self.spawner_marker = spawner_marker
        self.target_marker = target_marker
        self.clock = clock
        self.particles: List[Particle] = []
        self.frames = 0

        # A configured base velocity of exactly 0 freezes the forward step
        # for every particle, however its own velocity was sampled.
        self.frozen_velocity = spec.velocity == 0

        logging.info(
            f"ParticlePool for canvas '{canvas.id}' ready: quantity {spec.quantity}, "
            f"bounds {canvas.width}x{canvas.height} +/- {canvas.threshold}px."
        )

    def spawn(self) -> Particle:
        return Particle(
            self.spec, self.canvas,
            self.registry.spawner_list, self.registry.target_list,
            self.rng, self.clock,
        )

    def top_up(self) -> int:
        """Creates particles until the pool holds the configured quantity."""
        missing = self.spec.quantity - len(self.particles)
        for _ in range(missing):
            self.particles.append(self.spawn())
        return max(missing, 0)

    def _draw_trail(self, particle: Particle) -> None:
        trail = particle.trail
        if len(trail) < 2:
            return
        points = list(trail)
        for start, end in zip(points, points[1:]):
            self.surface.line(particle.color, start, end, particle.size)

    def _draw_markers(self, points: Sequence[Point], marker: IdentifierConfig) -> None:
        for index, point in enumerate(points):
            self.surface.rect(marker.color, point.x, point.y, marker.size)
            self.surface.text(marker.color, str(index), point.x, point.y - MARKER_LABEL_OFFSET)

    def advance(self, dt: float) -> Tuple[int, int]:
        """
        Ages, draws and moves every particle, then drops the retired ones.

        Returns:
            Tuple[int, int]: Particles retired by lifespan and by bounds.
        """
        follow_dt = 0.0 if self.frozen_velocity else dt
        width, height, threshold = self.canvas.width, self.canvas.height, self.canvas.threshold

        survivors = []
        expired = escaped = 0
        for particle in self.particles:
            particle.lifespan -= FPS * dt
            self._draw_trail(particle)
            particle.spread(dt)
            particle.follow(particle.target, follow_dt)

            if particle.is_expired():
                expired += 1
            elif particle.is_out_of_bounds(width, height, threshold):
                escaped += 1
            else:
                survivors.append(particle)

        # Rebuilt after the pass, never shrunk while iterating.
        self.particles = survivors
        return expired, escaped

    def tick(self, dt: float) -> None:
        """Renders one frame of the canvas."""
        self.surface.fill(self.canvas.background_color)
        created = self.top_up()
        expired, escaped = self.advance(dt)
        self._draw_markers(self.registry.target_list, self.target_marker)
        self._draw_markers(self.registry.spawner_list, self.spawner_marker)
        self.frames += 1

        if self.frames % LOG_THROTTLE_FRAMES == 0:
            logging.debug(
                f"Canvas '{self.canvas.id}' frame {self.frames}: +{created} created, "
                f"-{expired} expired, -{escaped} out of bounds, {len(self.particles)} live."
            )
