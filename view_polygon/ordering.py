"""
Front-to-back ordering of occluders as seen from the origin.

The order is only meaningful between occluders that straddle a common ray,
which is exactly the situation inside the potential occluder list.
"""

import math
from enum import Enum
from typing import Optional, Sequence, Tuple

from view_polygon.geometry import (
    POINT_EPSILON,
    TWO_PI,
    Point,
    distance_squared,
    orient2d,
    orientation,
    points_almost_equal,
)
from view_polygon.occluders import BlockingType, Occluder

# Distance a shared endpoint is moved along each segment before side tests
SHARED_ENDPOINT_OFFSET = 1e-3

# Angular slack when deciding whether two spans overlap
SPAN_EPSILON = 1e-12


class SegmentOrder(Enum):
    FRONT = "front"
    BEHIND = "behind"
    CROSSES = "crosses"


def _nudge(point: Point, toward: Point, length: float) -> Point:
    """Move ``point`` toward ``toward`` by SHARED_ENDPOINT_OFFSET, capped at half the segment."""
    step = min(SHARED_ENDPOINT_OFFSET, 0.5 * length)
    scale = step / length
    return Point(point.x + (toward.x - point.x) * scale, point.y + (toward.y - point.y) * scale)


def _test_points(s1: Occluder, s2: Occluder) -> Tuple[Point, Point, Point, Point]:
    """Endpoints of both segments with any shared endpoint pulled inward."""
    a1, b1, a2, b2 = s1.a, s1.b, s2.a, s2.b
    len1 = math.sqrt(s1.length_squared)
    len2 = math.sqrt(s2.length_squared)
    shared_a1 = points_almost_equal(a1, a2) or points_almost_equal(a1, b2)
    shared_b1 = points_almost_equal(b1, a2) or points_almost_equal(b1, b2)
    shared_a2 = points_almost_equal(a2, s1.a) or points_almost_equal(a2, s1.b)
    shared_b2 = points_almost_equal(b2, s1.a) or points_almost_equal(b2, s1.b)
    if shared_a1:
        a1 = _nudge(s1.a, s1.b, len1)
    if shared_b1:
        b1 = _nudge(s1.b, s1.a, len1)
    if shared_a2:
        a2 = _nudge(s2.a, s2.b, len2)
    if shared_b2:
        b2 = _nudge(s2.b, s2.a, len2)
    return a1, b1, a2, b2


def _side_of(a: Point, b: Point, p: Point, q: Point) -> Optional[int]:
    """
    Common side of p and q relative to line a -> b.

    Returns the shared sign when both points lie on one side (a point on the
    line counts for either side), 0 when both are on the line, and None when
    they are on opposite sides.
    """
    sp = orientation(a, b, p)
    sq = orientation(a, b, q)
    if sp == 0:
        return sq
    if sq == 0 or sq == sp:
        return sp
    return None


def _near_line(a: Point, b: Point, p: Point, length: float) -> bool:
    """True when p lies within POINT_EPSILON of the line a -> b."""
    return abs(orient2d(a, b, p)) <= POINT_EPSILON * length


def collinear(s1: Occluder, s2: Occluder) -> bool:
    """
    True when both occluders lie on one line.

    Tested on the original endpoints with the same tolerance used to merge
    endpoints, so split pieces whose cut point was rounded still count.
    """
    len1 = math.sqrt(s1.length_squared)
    len2 = math.sqrt(s2.length_squared)
    return (
        _near_line(s1.a, s1.b, s2.a, len1)
        and _near_line(s1.a, s1.b, s2.b, len1)
        and _near_line(s2.a, s2.b, s1.a, len2)
        and _near_line(s2.a, s2.b, s1.b, len2)
    )


def compare_occluders(s1: Occluder, s2: Occluder, origin: Point) -> SegmentOrder:
    """
    Decide whether s1 is in front of s2 as seen from the origin.

    If s2 lies entirely on the origin's side of s1's line it is in front of
    s1; entirely on the far side and s1 is in front. Otherwise the test is
    repeated with s2's line. Shared endpoints are nudged apart first so that
    touching segments still get a definite answer. Occluders on one line
    (duplicates, reversed copies, overlapping pieces) are ordered by the
    distance of their midpoints instead.

    Parameters:
        s1: First occluder
        s2: Second occluder
        origin: Sweep origin

    Returns:
        SegmentOrder.FRONT if s1 is in front, BEHIND if s2 is in front,
        CROSSES if the segments cross and neither test resolves
    """
    if collinear(s1, s2):
        # Any shared ray meets both at the same point; nearer midpoint wins
        mid1 = Point(0.5 * (s1.a.x + s1.b.x), 0.5 * (s1.a.y + s1.b.y))
        mid2 = Point(0.5 * (s2.a.x + s2.b.x), 0.5 * (s2.a.y + s2.b.y))
        if distance_squared(origin, mid1) <= distance_squared(origin, mid2):
            return SegmentOrder.FRONT
        return SegmentOrder.BEHIND

    a1, b1, a2, b2 = _test_points(s1, s2)
    side2 = _side_of(s1.a, s1.b, a2, b2)
    side1 = _side_of(s2.a, s2.b, a1, b1)

    if side2:
        origin_side = orientation(s1.a, s1.b, origin)
        if origin_side != 0:
            return SegmentOrder.BEHIND if side2 == origin_side else SegmentOrder.FRONT

    if side1:
        origin_side = orientation(s2.a, s2.b, origin)
        if origin_side != 0:
            return SegmentOrder.FRONT if side1 == origin_side else SegmentOrder.BEHIND

    return SegmentOrder.CROSSES


def in_front_of(s1: Occluder, s2: Occluder, origin: Point) -> Optional[bool]:
    """Boolean view of compare_occluders; None when the segments cross."""
    order = compare_occluders(s1, s2, origin)
    if order is SegmentOrder.CROSSES:
        return None
    return order is SegmentOrder.FRONT


def blocks_point(occluder: Occluder, point: Point, origin: Point) -> bool:
    """
    True when the occluder separates ``point`` from the origin.

    Points on the occluder itself (including its endpoints) are not blocked.
    """
    if occluder.has_endpoint(point):
        return False
    side_origin = orientation(occluder.a, occluder.b, origin)
    side_point = orientation(occluder.a, occluder.b, point)
    if side_point == 0 or side_point == side_origin:
        return False
    oa = orientation(origin, point, occluder.a)
    ob = orientation(origin, point, occluder.b)
    return oa * ob <= 0


def _angular_span(occluder: Occluder, origin: Point) -> Tuple[float, float]:
    """(start angle, width) of the occluder's span in increasing-angle order."""
    if orientation(origin, occluder.a, occluder.b) >= 0:
        lead, trail = occluder.a, occluder.b
    else:
        lead, trail = occluder.b, occluder.a
    start = math.atan2(lead.y - origin.y, lead.x - origin.x)
    end = math.atan2(trail.y - origin.y, trail.x - origin.x)
    return start, (end - start) % TWO_PI


def spans_overlap(s1: Occluder, s2: Occluder, origin: Point) -> bool:
    """True when some ray from the origin passes through the interior of both spans."""
    start1, width1 = _angular_span(s1, origin)
    start2, width2 = _angular_span(s2, origin)
    rel = (start2 - start1) % TWO_PI
    return rel < width1 - SPAN_EPSILON or rel + width2 > TWO_PI + SPAN_EPSILON


def occludes(s1: Occluder, s2: Occluder, origin: Point) -> bool:
    """True when s1 hides part of s2 from the origin."""
    if not spans_overlap(s1, s2, origin):
        return False
    return compare_occluders(s1, s2, origin) is SegmentOrder.FRONT


def terrain_excluded(occluders: Sequence[Occluder], channel: str, origin: Point) -> bool:
    """
    Whether an endpoint is hidden by terrain rules.

    The endpoint is excluded when its incident occluders include no opaque
    one and either exactly one terrain occluder, or exactly two terrain
    occluders that do not occlude each other (a symmetric pair opening
    toward or away from the origin). Three or more terrain occluders, or an
    asymmetric pair, keep the endpoint.

    Parameters:
        occluders: Occluders incident to the endpoint
        channel: Channel being swept
        origin: Sweep origin
    """
    terrain = []
    for occluder in occluders:
        blocking = occluder.blocking_for(channel)
        if blocking is BlockingType.NORMAL:
            return False
        if blocking is BlockingType.TERRAIN:
            terrain.append(occluder)

    if len(terrain) == 1:
        return True
    if len(terrain) == 2:
        t1, t2 = terrain
        return not occludes(t1, t2, origin) and not occludes(t2, t1, origin)
    return False
