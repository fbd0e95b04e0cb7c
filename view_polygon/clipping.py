"""
Radius limiting: clipping occluders to a circle and padding arcs.
"""

import logging
import math
from typing import List, Optional, Sequence, Tuple
import numpy as np

from view_polygon.bezier import bezier_arc_padding, quadrant_points_for_density
from view_polygon.errors import PaddingLimitError
from view_polygon.geometry import TWO_PI, Point
from view_polygon.occluders import Occluder, OccluderKind

logger = logging.getLogger(__name__)

# Parametric slack when comparing circle intersections against [0, 1]
CIRCLE_EPSILON = 1e-9

MAX_PADDING_POINTS = 10_000


def circle_intersection_params(
    a: Point, b: Point, origin: Point, radius: float
) -> Optional[Tuple[float, float]]:
    """
    Parameters t1 <= t2 where the line a + t*(b-a) meets the circle.

    Uses parametric line equation: P(t) = p1 + t*d, substituted into
    |P(t)|^2 = r^2 in the origin-centered frame, giving the quadratic
    (d·d)t^2 + 2(p1·d)t + (p1·p1 - r^2) = 0.

    Returns:
        (t1, t2), or None when the line misses the circle or only touches it
    """
    p1x, p1y = a.x - origin.x, a.y - origin.y
    dx, dy = b.x - a.x, b.y - a.y

    qa = dx * dx + dy * dy
    qb = 2.0 * (p1x * dx + p1y * dy)
    qc = p1x * p1x + p1y * p1y - radius * radius

    discriminant = qb * qb - 4.0 * qa * qc
    if discriminant <= 0 or qa < 1e-12:
        return None

    sqrt_disc = math.sqrt(discriminant)
    t1 = (-qb - sqrt_disc) / (2.0 * qa)
    t2 = (-qb + sqrt_disc) / (2.0 * qa)
    return t1, t2


def _on_circle(a: Point, b: Point, t: float, origin: Point, radius: float) -> Point:
    """Point at parameter t, projected exactly onto the circle."""
    x = a.x + t * (b.x - a.x) - origin.x
    y = a.y + t * (b.y - a.y) - origin.y
    scale = radius / math.hypot(x, y)
    return Point(origin.x + x * scale, origin.y + y * scale)


def clip_occluder_to_circle(occluder: Occluder, origin: Point, radius: float) -> Optional[Occluder]:
    """
    Part of an occluder inside the circle.

    Parameters:
        occluder: Occluder to clip
        origin: Circle center
        radius: Circle radius

    Returns:
        The occluder itself when wholly inside, a RADIUS_FRAGMENT covering
        the inside part when it crosses the circle, or None when it lies
        outside or only touches the circle
    """
    params = circle_intersection_params(occluder.a, occluder.b, origin, radius)
    if params is None:
        return None
    t1, t2 = params
    t_lo = max(0.0, t1)
    t_hi = min(1.0, t2)
    if t_hi - t_lo <= CIRCLE_EPSILON:
        return None

    clip_start = t_lo > CIRCLE_EPSILON
    clip_end = t_hi < 1.0 - CIRCLE_EPSILON
    if not clip_start and not clip_end:
        return occluder

    a = _on_circle(occluder.a, occluder.b, t_lo, origin, radius) if clip_start else occluder.a
    b = _on_circle(occluder.a, occluder.b, t_hi, origin, radius) if clip_end else occluder.b
    return occluder.derive(a, b, suffix="r", kind=OccluderKind.RADIUS_FRAGMENT)


def clip_occluders_to_circle(
    occluders: Sequence[Occluder], origin: Point, radius: float
) -> List[Occluder]:
    """Clip every occluder to the circle, dropping those left outside."""
    clipped = []
    n_fragments = 0
    for occluder in occluders:
        result = clip_occluder_to_circle(occluder, origin, radius)
        if result is None:
            continue
        if result is not occluder:
            n_fragments += 1
        clipped.append(result)
    logger.debug(
        "Radius clip (r=%.3f): %d in, %d kept, %d fragment(s)",
        radius, len(occluders), len(clipped), n_fragments,
    )
    return clipped


def circle_point(origin: Point, radius: float, angle: float) -> Point:
    return Point(origin.x + radius * math.cos(angle), origin.y + radius * math.sin(angle))


def arc_sweep(start_angle: float, end_angle: float, full_turn_if_equal: bool = False) -> float:
    """Extent from start to end in increasing angle, in [0, 2π)."""
    sweep = (end_angle - start_angle) % TWO_PI
    if sweep < 1e-12 or sweep > TWO_PI - 1e-12:
        # Start and end coincide up to rounding
        return TWO_PI if full_turn_if_equal else 0.0
    return sweep


def arc_padding(
    origin: Point,
    radius: float,
    start_angle: float,
    end_angle: float,
    density: int,
    method: str = "angle",
    full_turn_if_equal: bool = False,
    max_points: int = MAX_PADDING_POINTS,
) -> List[Point]:
    """
    Vertices approximating the arc between two rays, excluding the ends.

    The arc runs from ``start_angle`` in increasing angle to ``end_angle``.
    With the "angle" method it is split into round(Δ / (π / density)) equal
    steps whose points lie exactly on the circle; the "bezier" method samples
    the cubic quadrant approximation instead.

    Parameters:
        origin: Circle center
        radius: Circle radius
        start_angle: Angle of the ray the arc starts on
        end_angle: Angle of the ray the arc ends on
        density: Points per half turn
        method: "angle" or "bezier"
        full_turn_if_equal: Treat equal start and end as a full circle
        max_points: Upper bound on the number of points produced

    Returns:
        Intermediate points in sweep order

    Raises:
        PaddingLimitError: If more than max_points points would be produced
    """
    sweep = arc_sweep(start_angle, end_angle, full_turn_if_equal)
    if sweep <= 0.0:
        return []

    if method == "bezier":
        n_quadrant = quadrant_points_for_density(density)
        requested = int(math.ceil(4 * n_quadrant * sweep / TWO_PI))
        if requested > max_points:
            raise PaddingLimitError(requested, max_points)
        return bezier_arc_padding(origin, radius, start_angle, sweep, n_quadrant)

    if method != "angle":
        raise ValueError(f"unknown padding method: {method!r}")

    step = math.pi / density
    n_steps = max(1, int(round(sweep / step)))
    if n_steps - 1 > max_points:
        raise PaddingLimitError(n_steps - 1, max_points)
    angles = start_angle + np.arange(1, n_steps, dtype=np.float64) * (sweep / n_steps)
    xs = origin.x + radius * np.cos(angles)
    ys = origin.y + radius * np.sin(angles)
    return [Point(float(x), float(y)) for x, y in zip(xs, ys)]


def full_circle(origin: Point, radius: float, start_angle: float, density: int, method: str = "angle") -> List[Point]:
    """Closed approximation of the whole circle, starting on ``start_angle``."""
    start = circle_point(origin, radius, start_angle)
    return [start] + arc_padding(
        origin, radius, start_angle, start_angle, density, method, full_turn_if_equal=True
    )
