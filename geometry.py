# geometry.py
"""
2D point type and the small amount of vector math the motion model needs.
"""
import math
from typing import Any, Dict, NamedTuple, Tuple


class Point(NamedTuple):
    """An immutable position in canvas pixels."""
    x: float
    y: float

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Point":
        return cls(float(data['x']), float(data['y']))

    def to_dict(self) -> Dict[str, float]:
        return {'x': self.x, 'y': self.y}


def distance(a: Point, b: Point) -> float:
    return math.hypot(b.x - a.x, b.y - a.y)


def direction(a: Point, b: Point) -> Tuple[float, float]:
    """Unit vector from a to b, or (0, 0) when the points coincide."""
    dx = b.x - a.x
    dy = b.y - a.y
    magnitude = math.hypot(dx, dy)
    if magnitude == 0:
        return 0.0, 0.0
    return dx / magnitude, dy / magnitude


def perpendicular(dx: float, dy: float) -> Tuple[float, float]:
    """The vector rotated by 90 degrees."""
    return -dy, dx
