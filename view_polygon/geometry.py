"""
Geometry primitives for the visibility sweep: points, orientation, ray hits.
"""

import math
from fractions import Fraction
from typing import NamedTuple, Optional, Tuple
import numpy as np
from numpy.typing import NDArray

# Two points closer than this are treated as the same point
POINT_EPSILON = 1e-6

# Shewchuk's forward error bound for the 2x2 orientation determinant
_ORIENT_ERRBOUND = (3.0 + 16.0 * np.finfo(np.float64).eps) * np.finfo(np.float64).eps

TWO_PI = 2.0 * math.pi


class Point(NamedTuple):
    """2D point in world coordinates."""
    x: float
    y: float

    @classmethod
    def of(cls, value) -> "Point":
        """Coerce a Point, tuple or (2,) array into a float Point."""
        arr = np.asarray(value, dtype=np.float64)
        if arr.shape != (2,):
            raise ValueError(f"point must have shape (2,), got {arr.shape}")
        if not np.all(np.isfinite(arr)):
            raise ValueError(f"point coordinates must be finite, got {arr.tolist()}")
        return cls(float(arr[0]), float(arr[1]))


def normalize_angle(angle: float) -> float:
    """
    Normalize angle to [-π, π).

    Parameters:
        angle: Angle in radians

    Returns:
        Equivalent angle in [-π, π)
    """
    result = math.fmod(angle + math.pi, TWO_PI)
    if result < 0:
        result += TWO_PI
    result -= math.pi
    # fmod can land exactly on +π after the shift back
    if result >= math.pi:
        result -= TWO_PI
    return result


def angle_from_origin(origin: Point, point: Point) -> float:
    """Angle of the ray origin -> point in [-π, π)."""
    return normalize_angle(math.atan2(point.y - origin.y, point.x - origin.x))


def angles_from_origin(origin: Point, points: NDArray[np.float64]) -> NDArray[np.float64]:
    """
    Vectorized angles of the rays origin -> points.

    Parameters:
        origin: Sweep origin
        points: Array of shape (N, 2)

    Returns:
        Angles of shape (N,) in [-π, π)
    """
    if points.shape[0] == 0:
        return np.zeros(0, dtype=np.float64)
    angles = np.arctan2(points[:, 1] - origin.y, points[:, 0] - origin.x)
    # atan2 returns (-π, π]; fold +π onto -π
    angles[angles >= np.pi] -= 2.0 * np.pi
    return angles


def distance_squared(p1: Point, p2: Point) -> float:
    dx = p2.x - p1.x
    dy = p2.y - p1.y
    return dx * dx + dy * dy


def points_almost_equal(p1: Point, p2: Point, epsilon: float = POINT_EPSILON) -> bool:
    """True when the two points lie within epsilon of each other."""
    return distance_squared(p1, p2) <= epsilon * epsilon


def orient2d(p1: Point, p2: Point, p3: Point) -> float:
    """
    Twice the signed area of triangle (p1, p2, p3), in floating point.

    Positive when p3 lies to the left of the directed line p1 -> p2
    (counter-clockwise turn in a y-up frame), negative to the right.
    """
    return (p2.x - p1.x) * (p3.y - p1.y) - (p2.y - p1.y) * (p3.x - p1.x)


def _orient2d_exact(p1: Point, p2: Point, p3: Point) -> Fraction:
    ax, ay = Fraction(p1.x), Fraction(p1.y)
    return (Fraction(p2.x) - ax) * (Fraction(p3.y) - ay) - (Fraction(p2.y) - ay) * (Fraction(p3.x) - ax)


def orientation(p1: Point, p2: Point, p3: Point) -> int:
    """
    Robust orientation predicate.

    The float determinant is trusted when its magnitude exceeds the forward
    error bound; otherwise it is recomputed exactly with rational arithmetic.

    Parameters:
        p1, p2: Points defining the directed line p1 -> p2
        p3: Point to classify

    Returns:
        +1 if p3 is left of p1 -> p2, -1 if right, 0 if collinear
    """
    detleft = (p2.x - p1.x) * (p3.y - p1.y)
    detright = (p2.y - p1.y) * (p3.x - p1.x)
    det = detleft - detright
    errbound = _ORIENT_ERRBOUND * (abs(detleft) + abs(detright))
    if det > errbound:
        return 1
    if -det > errbound:
        return -1
    exact = _orient2d_exact(p1, p2, p3)
    if exact > 0:
        return 1
    if exact < 0:
        return -1
    return 0


def direction_from_angle(angle: float) -> Tuple[float, float]:
    return (math.cos(angle), math.sin(angle))


def point_along(origin: Point, direction: Tuple[float, float], distance: float) -> Point:
    """Point at the given distance from origin along a (not necessarily unit) direction."""
    length = math.hypot(direction[0], direction[1])
    scale = distance / length
    return Point(origin.x + direction[0] * scale, origin.y + direction[1] * scale)


def intersect_ray_line(
    origin: Point,
    direction: Tuple[float, float],
    a: Point,
    b: Point,
) -> Optional[Point]:
    """
    Intersect the ray origin + t * direction with the infinite line through a, b.

    Parameters:
        origin: Ray origin
        direction: Ray direction (any non-zero length)
        a, b: Two distinct points on the line

    Returns:
        Intersection point, or None if the ray is parallel to the line or
        the line lies behind the origin
    """
    ex = b.x - a.x
    ey = b.y - a.y
    denom = direction[0] * ey - direction[1] * ex
    if denom == 0.0:
        return None
    t = ((a.x - origin.x) * ey - (a.y - origin.y) * ex) / denom
    if t < 0.0:
        return None
    return Point(origin.x + t * direction[0], origin.y + t * direction[1])


def ray_segment_hit(
    origin: Point,
    direction: Tuple[float, float],
    a: Point,
    b: Point,
) -> Point:
    """
    Hit point of a sweep ray on a segment known to straddle it.

    Falls back to the nearer endpoint when the ray is (numerically) parallel
    to the segment, which only happens for near-degenerate spans.
    """
    hit = intersect_ray_line(origin, direction, a, b)
    if hit is not None:
        return hit
    if distance_squared(origin, a) <= distance_squared(origin, b):
        return a
    return b
