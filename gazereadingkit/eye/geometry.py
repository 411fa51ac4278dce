from __future__ import annotations
import math
import numpy as np
from enum import Enum
from typing import Iterable, Sequence, Tuple

Point = Tuple[float, float]

class Direction(str, Enum):
    """Compass octant in screen coordinates (y grows downward)."""
    RIGHT = "Right"
    RIGHT_DOWN = "Right-Down"
    DOWN = "Down"
    LEFT_DOWN = "Left-Down"
    LEFT = "Left"
    LEFT_UP = "Left-Up"
    UP = "Up"
    RIGHT_UP = "Right-Up"

RIGHTWARD = frozenset({Direction.RIGHT, Direction.RIGHT_DOWN, Direction.RIGHT_UP})
LEFTWARD = frozenset({Direction.LEFT, Direction.LEFT_DOWN, Direction.LEFT_UP})

# upper bound (inclusive) of each octant, walking clockwise from Right
_OCTANTS = [
    (22.5, Direction.RIGHT),
    (67.5, Direction.RIGHT_DOWN),
    (112.5, Direction.DOWN),
    (157.5, Direction.LEFT_DOWN),
]
_NEG_OCTANTS = [
    (-112.5, Direction.LEFT_UP),
    (-67.5, Direction.UP),
    (-22.5, Direction.RIGHT_UP),
]

def _xy(points: Iterable) -> np.ndarray:
    return np.array([(p[0], p[1]) for p in points], dtype=float).reshape(-1, 2)

def centroid(points: Sequence) -> Point:
    if not points: raise ValueError("centroid of no points")
    c = _xy(points).mean(axis=0)
    return float(c[0]), float(c[1])

def amplitude(p1: Sequence[float], p2: Sequence[float]) -> float:
    return math.hypot(p2[0] - p1[0], p2[1] - p1[1])

def angle_deg(p1: Sequence[float], p2: Sequence[float]) -> float:
    return math.degrees(math.atan2(p2[1] - p1[1], p2[0] - p1[0]))

def octant(angle: float) -> Direction:
    """Map an atan2 angle in degrees, (-180, 180], to its octant."""
    # half-open (lo, hi] octants: 157.5 itself is Left-Down, -157.5 is Left
    if angle > 157.5 or angle <= -157.5:
        return Direction.LEFT
    if angle > -22.5:
        for hi, d in _OCTANTS:
            if angle <= hi: return d
    for hi, d in _NEG_OCTANTS:
        if angle <= hi: return d
    return Direction.LEFT  # unreachable for finite input

def direction(p1: Sequence[float], p2: Sequence[float]) -> Direction:
    return octant(angle_deg(p1, p2))

def bounding_box(points: Sequence) -> Tuple[float, float, float, float]:
    """(min_x, min_y, max_x, max_y) of a non-empty point set."""
    xy = _xy(points)
    lo = xy.min(axis=0); hi = xy.max(axis=0)
    return float(lo[0]), float(lo[1]), float(hi[0]), float(hi[1])

def dispersion(points: Sequence) -> float:
    """I-DT dispersion: bounding box width plus height."""
    x0, y0, x1, y1 = bounding_box(points)
    return (x1 - x0) + (y1 - y0)
