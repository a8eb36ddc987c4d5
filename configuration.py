# configuration.py
"""
Configuration models for a particle engine.

The declarative configuration arrives as a plain dictionary using the
camelCase keys of `config.json`. `parse_config` validates it once and turns
it into frozen dataclasses, so the rest of the engine never has to guess
about missing keys.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple, Union

from constants import (
    CURVE_MODES, DEFAULT_CANVAS_ID, DEFAULT_CURVE, DEFAULT_CURVE_AMPLITUDE,
    DEFAULT_CURVE_FREQUENCY, DEFAULT_MARKER_COLOR, DEFAULT_MARKER_SIZE,
    DEFAULT_QUANTITY, DEFAULT_THRESHOLD, SMOOTHING_LEVELS, STORAGE_TYPES
)
from exceptions import ConfigurationError
from geometry import Point

# --- Data Contracts ---
#
# parse_config(raw: Mapping[str, Any] | EngineConfig) -> EngineConfig:
#   - Inputs:
#     - raw: The declarative configuration tree with the sections
#       "canvas" (required), "particles", "initialPositions", "listeners"
#       and "storage".
#   - Outputs: A frozen EngineConfig.
#   - Side Effects: None. Logs at CRITICAL before raising.
#   - Invariants:
#     - canvas.appendTo, canvas.size and canvas.backgroundColor are present,
#       otherwise ConfigurationError is raised.
#     - curvature.curve is a number, "sin" or "cos".

CurveMode = Union[float, str]
ColorSpec = Union[None, str, Tuple[str, ...]]


@dataclass(frozen=True)
class CanvasConfig:
    id: str
    append_to: Any
    background_color: Any
    width: int
    height: int
    threshold: float = DEFAULT_THRESHOLD
    smoothing: Optional[str] = None


@dataclass(frozen=True)
class CurvatureConfig:
    amplitude: float = DEFAULT_CURVE_AMPLITUDE
    frequency: float = DEFAULT_CURVE_FREQUENCY
    curve: CurveMode = DEFAULT_CURVE
    axis_x: float = 1.0
    axis_y: float = 1.0


@dataclass(frozen=True)
class ParticleSpec:
    quantity: int = DEFAULT_QUANTITY
    size: Optional[float] = None
    max_size: Optional[float] = None
    velocity: Optional[float] = None
    max_velocity: Optional[float] = None
    length: Optional[int] = None
    max_length: Optional[int] = None
    lifespan: Optional[float] = None
    max_lifespan: Optional[float] = None
    color: ColorSpec = None
    spread_factor: Optional[float] = None
    curvature: CurvatureConfig = field(default_factory=CurvatureConfig)


@dataclass(frozen=True)
class IdentifierConfig:
    color: Any = DEFAULT_MARKER_COLOR
    size: float = DEFAULT_MARKER_SIZE


@dataclass(frozen=True)
class ListenerConfig:
    keyboard_trigger: Optional[str] = None
    identifier: IdentifierConfig = field(default_factory=IdentifierConfig)


@dataclass(frozen=True)
class ListenersConfig:
    reset_positions: Optional[str] = None
    download_positions: Optional[str] = None
    spawners: ListenerConfig = field(default_factory=ListenerConfig)
    targets: ListenerConfig = field(default_factory=ListenerConfig)


@dataclass(frozen=True)
class StorageFlags:
    spawners: bool = False
    targets: bool = False


@dataclass(frozen=True)
class StorageConfig:
    storage_type: str
    store_new_positions: StorageFlags = field(default_factory=StorageFlags)
    store_listeners_positions: StorageFlags = field(default_factory=StorageFlags)


@dataclass(frozen=True)
class InitialPositions:
    spawners: Tuple[Point, ...] = ()
    targets: Tuple[Point, ...] = ()


@dataclass(frozen=True)
class EngineConfig:
    canvas: CanvasConfig
    particles: ParticleSpec = field(default_factory=ParticleSpec)
    initial_positions: InitialPositions = field(default_factory=InitialPositions)
    listeners: ListenersConfig = field(default_factory=ListenersConfig)
    storage: Optional[StorageConfig] = None


def _fail(message: str) -> None:
    logging.critical(f"Configuration error: {message}")
    raise ConfigurationError(message)


def _section(payload: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = payload.get(key)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        _fail(f"'{key}' must be an object, got {type(value).__name__}.")
    return value


def _number(payload: Mapping[str, Any], key: str, section: str) -> Optional[float]:
    value = payload.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        _fail(f"'{section}.{key}' must be a number, got {value!r}.")
    return value


def _parse_canvas(payload: Mapping[str, Any]) -> CanvasConfig:
    canvas = _section(payload, 'canvas')
    missing = [
        key for key in ('appendTo', 'size', 'backgroundColor')
        if canvas.get(key) is None or canvas.get(key) == ''
    ]
    if missing:
        _fail(f"canvas is missing required properties: {', '.join(missing)}.")

    size = canvas['size']
    if isinstance(size, Mapping):
        width, height = size.get('width'), size.get('height')
    else:
        try:
            width, height = size
        except (TypeError, ValueError):
            _fail(f"canvas.size must be {{width, height}}, got {size!r}.")
    for name, value in (('width', width), ('height', height)):
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
            _fail(f"canvas.size.{name} must be a positive number, got {value!r}.")

    threshold = _number(canvas, 'threshold', 'canvas')
    smoothing = canvas.get('smoothing')
    if smoothing is not None and smoothing not in SMOOTHING_LEVELS:
        _fail(f"canvas.smoothing must be one of {SMOOTHING_LEVELS}, got {smoothing!r}.")

    return CanvasConfig(
        id=str(canvas.get('id') or DEFAULT_CANVAS_ID),
        append_to=canvas['appendTo'],
        background_color=canvas['backgroundColor'],
        width=int(width),
        height=int(height),
        threshold=DEFAULT_THRESHOLD if threshold is None else threshold,
        smoothing=smoothing,
    )


def _parse_curvature(payload: Mapping[str, Any]) -> CurvatureConfig:
    curvature = _section(payload, 'curvature')
    curve = curvature.get('curve', DEFAULT_CURVE)
    if isinstance(curve, bool) or not (isinstance(curve, (int, float)) or curve in CURVE_MODES):
        _fail(f"particles.curvature.curve must be a number, 'sin' or 'cos', got {curve!r}.")

    amplitude = _number(curvature, 'amplitude', 'particles.curvature')
    frequency = _number(curvature, 'frequency', 'particles.curvature')
    axis = _section(curvature, 'axisCurve')
    axis_x = _number(axis, 'x', 'particles.curvature.axisCurve')
    axis_y = _number(axis, 'y', 'particles.curvature.axisCurve')

    return CurvatureConfig(
        amplitude=DEFAULT_CURVE_AMPLITUDE if amplitude is None else amplitude,
        frequency=DEFAULT_CURVE_FREQUENCY if frequency is None else frequency,
        curve=curve,
        axis_x=1.0 if axis_x is None else axis_x,
        axis_y=1.0 if axis_y is None else axis_y,
    )


def _parse_color(value: Any) -> ColorSpec:
    if value is None or value == "random":
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, Sequence) and value and all(isinstance(c, str) for c in value):
        return tuple(value)
    _fail(f"particles.color must be a string, a non-empty list of strings or null, got {value!r}.")


def _parse_particles(payload: Mapping[str, Any]) -> ParticleSpec:
    particles = _section(payload, 'particles')
    numbers = {
        key: _number(particles, key, 'particles')
        for key in (
            'quantity', 'size', 'maxSize', 'velocity', 'maxVelocity', 'length',
            'maxLength', 'lifespan', 'maxLifespan', 'spreadFactor'
        )
    }
    quantity = numbers['quantity']
    if quantity is not None and quantity < 0:
        _fail(f"particles.quantity must not be negative, got {quantity}.")

    return ParticleSpec(
        quantity=DEFAULT_QUANTITY if quantity is None else int(quantity),
        size=numbers['size'],
        max_size=numbers['maxSize'],
        velocity=numbers['velocity'],
        max_velocity=numbers['maxVelocity'],
        length=numbers['length'],
        max_length=numbers['maxLength'],
        lifespan=numbers['lifespan'],
        max_lifespan=numbers['maxLifespan'],
        color=_parse_color(particles.get('color')),
        spread_factor=numbers['spreadFactor'],
        curvature=_parse_curvature(particles),
    )


def _parse_points(values: Any, name: str) -> Tuple[Point, ...]:
    if values is None:
        return ()
    try:
        return tuple(Point.from_dict(value) for value in values)
    except (KeyError, TypeError, ValueError):
        _fail(f"initialPositions.{name} must be a list of {{x, y}} objects.")


def _parse_listener(payload: Mapping[str, Any], name: str) -> ListenerConfig:
    listener = _section(payload, name)
    identifier = _section(listener, 'identifier')
    size = _number(identifier, 'size', f"listeners.{name}.identifier")
    return ListenerConfig(
        keyboard_trigger=listener.get('keyboardTrigger'),
        identifier=IdentifierConfig(
            color=identifier.get('color', DEFAULT_MARKER_COLOR),
            size=DEFAULT_MARKER_SIZE if size is None else size,
        ),
    )


def _parse_flags(payload: Mapping[str, Any], key: str) -> StorageFlags:
    flags = _section(payload, key)
    return StorageFlags(
        spawners=bool(flags.get('spawners', False)),
        targets=bool(flags.get('targets', False)),
    )


def _parse_storage(payload: Mapping[str, Any]) -> Optional[StorageConfig]:
    storage = payload.get('storage')
    if storage is None:
        return None
    storage = _section(payload, 'storage')
    storage_type = storage.get('storageType')
    if storage_type not in STORAGE_TYPES:
        _fail(f"storage.storageType must be one of {STORAGE_TYPES}, got {storage_type!r}.")
    return StorageConfig(
        storage_type=storage_type,
        store_new_positions=_parse_flags(storage, 'storeNewPositions'),
        store_listeners_positions=_parse_flags(storage, 'storeListenersPositions'),
    )


def parse_config(raw: Union[Mapping[str, Any], EngineConfig]) -> EngineConfig:
    """
    Validates a declarative configuration and returns its typed form.

    Args:
        raw: The configuration dictionary, or an EngineConfig which is
            returned unchanged.

    Raises:
        ConfigurationError: If required canvas fields are missing or any
            section is malformed.
    """
    if isinstance(raw, EngineConfig):
        return raw
    if not isinstance(raw, Mapping):
        _fail(f"configuration must be an object, got {type(raw).__name__}.")

    initial = _section(raw, 'initialPositions')
    listeners = _section(raw, 'listeners')

    return EngineConfig(
        canvas=_parse_canvas(raw),
        particles=_parse_particles(raw),
        initial_positions=InitialPositions(
            spawners=_parse_points(initial.get('spawners'), 'spawners'),
            targets=_parse_points(initial.get('targets'), 'targets'),
        ),
        listeners=ListenersConfig(
            reset_positions=listeners.get('resetPositions'),
            download_positions=listeners.get('downloadPositions'),
            spawners=_parse_listener(listeners, 'spawners'),
            targets=_parse_listener(listeners, 'targets'),
        ),
        storage=_parse_storage(raw),
    )


def config_summary(config: EngineConfig) -> Dict[str, Any]:
    """A flat view of the settings worth logging at startup."""
    spec = config.particles
    return {
        'canvas': config.canvas.id,
        'size': (config.canvas.width, config.canvas.height),
        'threshold': config.canvas.threshold,
        'quantity': spec.quantity,
        'velocity': (spec.velocity, spec.max_velocity),
        'curve': spec.curvature.curve,
        'storage': config.storage.storage_type if config.storage else None,
    }
