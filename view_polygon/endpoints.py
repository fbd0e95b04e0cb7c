"""
Endpoint index for the sweep.

Merges coincident occluder endpoints, computes their angles around the
origin and groups them into events in sweep order. Per-occluder derived
data (leading / trailing endpoint, wrap flag) lives in a side table here
instead of on the occluders themselves.
"""

import logging
import math
from dataclasses import dataclass, field, replace
from typing import Dict, List, NamedTuple, Optional, Sequence, Tuple
import numpy as np

from view_polygon.angles import AngleWindow
from view_polygon.geometry import (
    POINT_EPSILON,
    TWO_PI,
    Point,
    angles_from_origin,
    distance_squared,
    orientation,
    points_almost_equal,
)
from view_polygon.occluders import Occluder

logger = logging.getLogger(__name__)

# Occluders narrower than this (seen from the origin) are in line with it
MIN_ANGULAR_SPAN = 1e-12


@dataclass(eq=False)
class Endpoint:
    """
    Merged occluder endpoint.

    Attributes:
        point: Canonical coordinates shared by every incident occluder
        angle: Angle from the origin, normalized into the sweep window
        distance_sq: Squared distance from the origin
        occluders: Occluders having this endpoint
    """
    point: Point
    angle: float = 0.0
    distance_sq: float = 0.0
    occluders: List[Occluder] = field(default_factory=list)

    def __repr__(self) -> str:
        return (
            f"Endpoint(({self.point.x:.3f}, {self.point.y:.3f}), "
            f"angle={math.degrees(self.angle):.3f}°, n={len(self.occluders)})"
        )


@dataclass(eq=False)
class SweepEvent:
    """
    Endpoints sharing exactly the same angle.

    The nearest endpoint is the representative: it fixes the ray direction
    and is the point reported to observers. Every endpoint in the group
    still updates the potential occluder list.
    """
    angle: float
    endpoints: List[Endpoint]

    @property
    def representative(self) -> Endpoint:
        return self.endpoints[0]


class OccluderSpan(NamedTuple):
    """Angular extent of one occluder in sweep order."""
    lead: Endpoint
    trail: Endpoint
    # True when the span crosses the start ray, i.e. the occluder is in play
    # before the first event
    wraps: bool


class EndpointIndex:
    """
    Merged endpoints and per-occluder spans for one sweep.

    Build it with ``EndpointIndex.build``; the constructor only sets up
    empty tables.
    """

    def __init__(self, origin: Point, window: AngleWindow, epsilon: float = POINT_EPSILON):
        self.origin = origin
        self.window = window
        self.epsilon = epsilon
        self.endpoints: List[Endpoint] = []
        self.occluders: List[Occluder] = []
        self.spans: Dict[object, OccluderSpan] = {}
        self.n_dropped = 0
        self._cells: Dict[Tuple[int, int], List[Endpoint]] = {}

    def _cell(self, point: Point) -> Tuple[int, int]:
        return (math.floor(point.x / self.epsilon), math.floor(point.y / self.epsilon))

    def lookup(self, point: Point) -> Optional[Endpoint]:
        """Existing endpoint within epsilon of ``point``, if any."""
        cx, cy = self._cell(point)
        for dx in (-1, 0, 1):
            for dy in (-1, 0, 1):
                for endpoint in self._cells.get((cx + dx, cy + dy), ()):
                    if points_almost_equal(endpoint.point, point, self.epsilon):
                        return endpoint
        return None

    def get_or_create(self, point: Point) -> Endpoint:
        """Endpoint for ``point``, merging with an existing one when close enough."""
        endpoint = self.lookup(point)
        if endpoint is not None:
            return endpoint
        endpoint = Endpoint(point=point)
        self._cells.setdefault(self._cell(point), []).append(endpoint)
        self.endpoints.append(endpoint)
        return endpoint

    @classmethod
    def build(cls, origin: Point, occluders: Sequence[Occluder], window: AngleWindow) -> "EndpointIndex":
        """
        Merge endpoints, drop degenerate occluders and compute spans.

        An occluder is dropped when its endpoints merge into one, when it is
        collinear with the origin, or when its angular span is too narrow to
        order reliably.

        Parameters:
            origin: Sweep origin
            occluders: Prepared occluders (filtered, clipped, split)
            window: Angular window used to normalize angles

        Returns:
            Populated EndpointIndex
        """
        index = cls(origin, window)

        candidates = []
        for occluder in occluders:
            ep_a = index.get_or_create(occluder.a)
            ep_b = index.get_or_create(occluder.b)
            candidates.append((occluder, ep_a, ep_b))

        index._compute_angles()

        for occluder, ep_a, ep_b in candidates:
            if ep_a is ep_b:
                index._drop(occluder, "zero length")
                continue
            if min(ep_a.distance_sq, ep_b.distance_sq) <= index.epsilon ** 2:
                index._drop(occluder, "touches origin")
                continue
            side = orientation(origin, ep_a.point, ep_b.point)
            if side == 0:
                index._drop(occluder, "collinear with origin")
                continue
            lead, trail = (ep_a, ep_b) if side > 0 else (ep_b, ep_a)
            span = (trail.angle - lead.angle) % TWO_PI
            if span < MIN_ANGULAR_SPAN or span > math.pi:
                index._drop(occluder, "angular span too narrow")
                continue

            if occluder.a != ep_a.point or occluder.b != ep_b.point:
                occluder = replace(occluder, a=ep_a.point, b=ep_b.point)
            index.occluders.append(occluder)
            ep_a.occluders.append(occluder)
            ep_b.occluders.append(occluder)
            index.spans[occluder.id] = OccluderSpan(lead, trail, lead.angle > trail.angle)

        index.endpoints = [ep for ep in index.endpoints if ep.occluders]
        logger.debug(
            "Endpoint index: %d occluder(s), %d endpoint(s), %d dropped",
            len(index.occluders), len(index.endpoints), index.n_dropped,
        )
        return index

    def _compute_angles(self) -> None:
        if not self.endpoints:
            return
        coords = np.array([ep.point for ep in self.endpoints], dtype=np.float64)
        raw = angles_from_origin(self.origin, coords)
        for endpoint, angle in zip(self.endpoints, raw.tolist()):
            endpoint.angle = self.window.normalize(angle)
            endpoint.distance_sq = distance_squared(self.origin, endpoint.point)

    def _drop(self, occluder: Occluder, reason: str) -> None:
        self.n_dropped += 1
        logger.debug("Dropped occluder %r: %s", occluder.id, reason)

    def sorted_endpoints(self) -> List[Endpoint]:
        """Endpoints by increasing angle, nearest first on ties."""
        return sorted(self.endpoints, key=lambda ep: (ep.angle, ep.distance_sq))

    def events(self) -> List[SweepEvent]:
        """
        Endpoint groups in sweep order, trimmed to the window.

        Endpoints whose angle exactly matches the previous one join its
        group, so each group is processed as a single event.
        """
        events: List[SweepEvent] = []
        for endpoint in self.window.trim(self.sorted_endpoints()):
            if events and endpoint.angle == events[-1].angle:
                events[-1].endpoints.append(endpoint)
            else:
                events.append(SweepEvent(angle=endpoint.angle, endpoints=[endpoint]))
        return events

    def seeds(self) -> List[Occluder]:
        """Occluders already crossing the start ray."""
        return [occ for occ in self.occluders if self.spans[occ.id].wraps]
