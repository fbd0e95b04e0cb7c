"""
Cubic Bezier approximation of circular arcs.

A quarter circle is approximated by the cubic with control points
(1, 0), (1, c), (c, 1), (0, 1) where c = 0.551915024494, which keeps the
radial error below 0.02%. Points are generated for the first octant and
reflected across y = x for the second, so each quadrant is exactly
symmetric, then rotated into the remaining quadrants.
"""

import math
from typing import List
import numpy as np
from numpy.typing import NDArray

from view_polygon.geometry import TWO_PI, Point

BEZIER_CIRCLE_CONSTANT = 0.551915024494


def quarter_arc_points(t: NDArray[np.float64]) -> NDArray[np.float64]:
    """
    Points on the unit quarter arc from (1, 0) at t=0 to (0, 1) at t=1.

    Parameters:
        t: Parameters in [0, 1], shape (N,)

    Returns:
        Points of shape (N, 2)
    """
    t = np.asarray(t, dtype=np.float64)
    # Evaluate the first octant only; mirror t > 0.5 across y = x
    mirrored = t > 0.5
    s = np.where(mirrored, 1.0 - t, t)
    u = 1.0 - s
    c3 = 3.0 * BEZIER_CIRCLE_CONSTANT
    x = u ** 3 + 3.0 * u * u * s + c3 * u * s * s
    y = c3 * u * u * s + 3.0 * u * s * s + s ** 3
    return np.column_stack([np.where(mirrored, y, x), np.where(mirrored, x, y)])


def bezier_circle(n_per_quadrant: int) -> NDArray[np.float64]:
    """
    Closed ring of approximate unit-circle points, increasing angle from 0.

    Parameters:
        n_per_quadrant: Points per quadrant, >= 1

    Returns:
        Array of shape (4 * n_per_quadrant, 2)
    """
    t = np.arange(n_per_quadrant, dtype=np.float64) / n_per_quadrant
    quarter = quarter_arc_points(t)
    quadrants = [quarter]
    for _ in range(3):
        # Rotate the previous quadrant by +90°
        prev = quadrants[-1]
        quadrants.append(np.column_stack([-prev[:, 1], prev[:, 0]]))
    return np.vstack(quadrants)


def bezier_arc_padding(
    origin: Point,
    radius: float,
    start_angle: float,
    sweep: float,
    n_per_quadrant: int,
    tolerance: float = 1e-9,
) -> List[Point]:
    """
    Bezier ring points strictly inside an arc.

    Parameters:
        origin: Circle center
        radius: Circle radius
        start_angle: Angle where the arc starts
        sweep: Arc extent in increasing angle, in (0, 2π]
        n_per_quadrant: Ring resolution
        tolerance: Angular margin excluding points at the arc ends

    Returns:
        Points ordered along the arc, excluding both ends
    """
    ring = bezier_circle(n_per_quadrant)
    angles = np.arctan2(ring[:, 1], ring[:, 0])
    rel = np.mod(angles - start_angle, TWO_PI)
    inside = (rel > tolerance) & (rel < sweep - tolerance)
    order = np.argsort(rel[inside], kind="stable")
    selected = ring[inside][order] * radius
    return [Point(origin.x + float(x), origin.y + float(y)) for x, y in selected]


def quadrant_points_for_density(density: int) -> int:
    """Ring resolution matching ``density`` points per half turn."""
    return max(1, int(math.ceil(density / 2.0)))
