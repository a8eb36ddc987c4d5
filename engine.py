# engine.py
"""
Public entry point of the particle engine.

EntropyParticles validates and applies a configuration, restores spawner and
target positions, creates the canvas surface, wires input handling and owns
the start/pause lifecycle of the render loop.
"""
import logging
import time
from typing import Any, Callable, Mapping, Optional, Tuple, Union

import numpy as np

from configuration import EngineConfig, config_summary, parse_config
from exceptions import NotInitializedError
from geometry import Point
from listeners import DownloadSink, InputAdapter
from loop import FrameScheduler, RenderLoop
from particle import Particle
from registry import PointRegistry
from simulation import ParticlePool
from storage import MemoryStore, StorageScopes

# --- Data Contracts ---
#
# class EntropyParticles:
#   - apply_config(self, config) -> None:
#     - Inputs: a configuration mapping or EngineConfig.
#     - Side Effects: Replaces registries, surface, pool, input adapter and
#       loop. Leaves the loop stopped.
#     - Invariants: When validation fails, nothing from a previous
#       configuration is touched.
#   - start() / pause(): idempotent. start() before apply_config raises
#     NotInitializedError.
#   - add_target / add_spawner / remove_target_at / remove_spawner_at:
#     registry mutations through the API channel.

PointLike = Union[Point, Tuple[float, float], Mapping[str, float]]


def _as_point(value: PointLike) -> Point:
    if isinstance(value, Mapping):
        return Point.from_dict(value)
    x, y = value
    return Point(float(x), float(y))


def _default_surface_factory(canvas):
    # Imported here so the engine can run headless with another factory.
    from visualization import CanvasSurface
    return CanvasSurface(canvas)


class EntropyParticles:
    """
    Configuration and lifecycle manager of one particle canvas.

    Args:
        scheduler: Delivers frame callbacks. Canvases sharing a window
            share one scheduler.
        scopes: Session and durable stores. Defaults to two memory stores.
        download_sink: Receives exported position files.
        seed: Seed of the random generator, used when rng is not given.
        rng: Random generator shared by every particle of this engine.
        surface_factory: Builds the drawing surface from a CanvasConfig.
        clock: Wall-clock seconds, used for the curvature phase.
    """
    def __init__(
        self,
        scheduler: Optional[FrameScheduler] = None,
        scopes: Optional[StorageScopes] = None,
        download_sink: Optional[DownloadSink] = None,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
        surface_factory: Callable[[Any], Any] = _default_surface_factory,
        clock: Callable[[], float] = time.time,
    ):
        self.scheduler = scheduler if scheduler is not None else FrameScheduler()
        self.scopes = scopes if scopes is not None else StorageScopes(MemoryStore(), MemoryStore())
        self.download_sink = download_sink
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.surface_factory = surface_factory
        self.clock = clock

        self._config: Optional[EngineConfig] = None
        self._surface = None
        self.registry: Optional[PointRegistry] = None
        self.pool: Optional[ParticlePool] = None
        self.input: Optional[InputAdapter] = None
        self.loop: Optional[RenderLoop] = None

    # --- Accessors ---

    @property
    def config(self) -> Optional[EngineConfig]:
        return self._config

    @property
    def surface(self):
        if self._surface is None:
            raise NotInitializedError("Canvas doesn't exist. Apply a configuration first.")
        return self._surface

    @property
    def targets(self) -> Tuple[Point, ...]:
        return self.registry.targets if self.registry is not None else ()

    @property
    def spawners(self) -> Tuple[Point, ...]:
        return self.registry.spawners if self.registry is not None else ()

    @property
    def particles(self) -> Tuple[Particle, ...]:
        return tuple(self.pool.particles) if self.pool is not None else ()

    @property
    def is_running(self) -> bool:
        return self.loop is not None and self.loop.is_running

    # --- Lifecycle ---

    def apply_config(self, config: Union[Mapping[str, Any], EngineConfig]) -> None:
        """
        Validates and applies a configuration.

        Raises:
            ConfigurationError: If required canvas fields are missing or a
                section is malformed. The engine is left as it was.
        """
        parsed = parse_config(config)
        canvas = parsed.canvas

        if self.loop is not None:
            self.loop.pause()
        self._detach_surface()

        registry = PointRegistry(canvas.id, self.scopes, parsed.storage)
        registry.load(parsed.initial_positions.spawners, parsed.initial_positions.targets)

        surface = self.surface_factory(canvas)
        canvas.append_to.append(surface)

        pool = ParticlePool(
            parsed.particles, canvas, registry, surface, self.rng,
            spawner_marker=parsed.listeners.spawners.identifier,
            target_marker=parsed.listeners.targets.identifier,
            clock=self.clock,
        )

        self._config = parsed
        self._surface = surface
        self.registry = registry
        self.pool = pool
        self.input = InputAdapter(registry, parsed.listeners, self.reload, self.download_sink, surface)
        self.loop = RenderLoop(pool.tick, self.scheduler, name=canvas.id)

        logging.info(f"Configuration applied: {config_summary(parsed)}")

    def _detach_surface(self) -> None:
        if self._surface is None or self._config is None:
            return
        host = self._config.canvas.append_to
        if hasattr(host, 'remove') and self._surface in host:
            host.remove(self._surface)

    def reload(self) -> None:
        """Re-applies the current configuration, keeping the loop state."""
        if self._config is None:
            raise NotInitializedError("Nothing to reload. Apply a configuration first.")
        was_running = self.is_running
        self.apply_config(self._config)
        if was_running:
            self.start()
        logging.info(f"Canvas '{self._config.canvas.id}' reloaded.")

    def start(self) -> None:
        if self.loop is None:
            raise NotInitializedError("Cannot start before a configuration is applied.")
        self.loop.start()

    def pause(self) -> None:
        if self.loop is not None:
            self.loop.pause()

    def handle_event(self, event) -> None:
        if self.input is not None:
            self.input.handle_event(event)

    # --- Registry API ---

    def _require_registry(self) -> PointRegistry:
        if self.registry is None:
            raise NotInitializedError("Positions are unavailable before a configuration is applied.")
        return self.registry

    def add_target(self, target: PointLike) -> None:
        self._require_registry().add_target(_as_point(target))

    def add_spawner(self, spawner: PointLike) -> None:
        self._require_registry().add_spawner(_as_point(spawner))

    def remove_target_at(self, target: PointLike) -> int:
        return self._require_registry().remove_target_at(_as_point(target))

    def remove_spawner_at(self, spawner: PointLike) -> int:
        return self._require_registry().remove_spawner_at(_as_point(spawner))
