# particle.py
"""
A single particle: its sampled attributes and its motion model.

Each particle spawns at a registry spawner (or somewhere on the canvas when
there is none), then drifts toward a registry target using a straight-line
step plus a perpendicular curvature term, with a small random jitter on top.
Recent positions are kept in a bounded trail that the pool draws as lines.
"""
import math
import time
from collections import deque
from typing import Callable, Deque, List, Optional

import numpy as np

from configuration import CanvasConfig, ParticleSpec
from constants import (
    CURVE_POSITION_PHASE, CURVE_STRENGTH, DEFAULT_LIFESPAN, DEFAULT_SIZE,
    DEFAULT_SPREAD_FACTOR, DEFAULT_TRAIL_LENGTH, DEFAULT_VELOCITY, FPS,
    RANDOM_COLOR_MAX, RANDOM_COLOR_MIN, SPREAD_TIME_SCALE
)
from geometry import Point, direction, distance, perpendicular
from utils import sample_range

# --- Data Contracts ---
#
# class Particle:
#   - __init__(self, spec, canvas, spawners, targets, rng, clock=time.time):
#     - Inputs:
#       - spec: ParticleSpec with the sampling ranges.
#       - canvas: CanvasConfig, used for fallback spawn and target points.
#       - spawners / targets: the registry's live point lists. They are
#         only read, never mutated.
#       - rng: numpy Generator, the only source of randomness.
#       - clock: returns wall-clock seconds; drives the curvature phase.
#     - Invariants:
#       - len(self.trail) <= self.trail_length at all times.
#       - self.color is never None.
#
#   - spread(dt) -> None: jitters the position along one random axis.
#   - follow(target, dt) -> None: records the trail and steps toward target.


class Particle:
    """
    One actor of the particle pool.
    """
    def __init__(
        self,
        spec: ParticleSpec,
        canvas: CanvasConfig,
        spawners: List[Point],
        targets: List[Point],
        rng: np.random.Generator,
        clock: Callable[[], float] = time.time,
    ):
        self.spec = spec
        self.spawners = spawners
        self.targets = targets
        self.rng = rng
        self.clock = clock

        self.size = sample_range(rng, spec.size, spec.max_size, DEFAULT_SIZE)
        self.velocity = sample_range(rng, spec.velocity, spec.max_velocity, DEFAULT_VELOCITY)
        self.trail_length = sample_range(
            rng, spec.length, spec.max_length, DEFAULT_TRAIL_LENGTH, integer=True
        )
        self.lifespan = sample_range(rng, spec.lifespan, spec.max_lifespan, DEFAULT_LIFESPAN)

        self.spawn_index = int(rng.integers(len(spawners))) if spawners else 0
        self.target_index = int(rng.integers(len(targets))) if targets else 0

        if spawners:
            spawn = spawners[self.spawn_index]
        else:
            spawn = Point(rng.uniform(0, canvas.width), rng.uniform(0, canvas.height))
        self.x = float(spawn.x)
        self.y = float(spawn.y)

        if targets:
            self.target = targets[self.target_index]
        else:
            self.target = Point(canvas.width / 2, canvas.height / 2)

        self.color = self._pick_color()

        self.trail: Deque[Point] = deque(
            (self.position for _ in range(self.trail_length)), maxlen=self.trail_length
        )

    @property
    def position(self) -> Point:
        return Point(self.x, self.y)

    def _pick_color(self):
        color = self.spec.color
        if isinstance(color, tuple):
            # Uniform over the palette; the index never reaches len(color).
            return color[int(self.rng.integers(len(color)))]
        if color is not None:
            return color
        value = max(RANDOM_COLOR_MIN, int(self.rng.integers(0, RANDOM_COLOR_MAX, endpoint=True)))
        return f"#{value:x}"

    def _curve(self) -> float:
        curvature = self.spec.curvature
        if not isinstance(curvature.curve, str):
            return float(curvature.curve)
        trig = math.cos if curvature.curve == "cos" else math.sin
        phase = self.clock() * curvature.frequency + self.x * CURVE_POSITION_PHASE
        return trig(phase) * curvature.amplitude

    def spread(self, dt: float) -> None:
        """Moves the particle by spreadFactor along one of +x, -x, +y, -y."""
        factor = self.spec.spread_factor
        amount = (DEFAULT_SPREAD_FACTOR if factor is None else factor) * SPREAD_TIME_SCALE * dt
        axis = int(self.rng.integers(4))
        if axis == 0:
            self.x += amount
        elif axis == 1:
            self.x -= amount
        elif axis == 2:
            self.y += amount
        else:
            self.y -= amount

    def follow(self, target: Optional[Point] = None, dt: float = 1 / FPS) -> None:
        """
        Steps toward the target along a curved path.

        The forward step is velocity frame-equivalents scaled by dt and never
        overshoots the target. The curvature term runs perpendicular to it.
        Once the particle is within velocity of its target on both axes, the
        target is re-read from the registry at the particle's own index.
        """
        if target is None:
            target = self.target

        self.trail.append(self.position)

        here = self.position
        remaining = distance(here, target)

        if remaining > self.velocity:
            ux, uy = direction(here, target)
            step = min(self.velocity * FPS * dt, remaining)
            vx, vy = ux * step, uy * step
            px, py = perpendicular(vx, vy)
            curvature = self.spec.curvature
            curve = self._curve() * CURVE_STRENGTH

            self.x += vx + px * curve * curvature.axis_x
            self.y += vy + py * curve * curvature.axis_y

        if (
            abs(self.x - target.x) < self.velocity
            and abs(self.y - target.y) < self.velocity
            and self.targets
        ):
            self.target = self.targets[self.target_index % len(self.targets)]

    def is_expired(self) -> bool:
        return self.lifespan <= 0

    def is_out_of_bounds(self, width: float, height: float, threshold: float) -> bool:
        return (
            self.x < -threshold
            or self.x > width + threshold
            or self.y < -threshold
            or self.y > height + threshold
        )

    def __repr__(self) -> str:
        return (
            f"Particle(pos=({self.x:.1f}, {self.y:.1f}), target=({self.target.x:.1f}, "
            f"{self.target.y:.1f}), lifespan={self.lifespan:.1f}, velocity={self.velocity:.2f})"
        )
