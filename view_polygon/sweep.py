"""
Angular sweep
=============

The sweep walks endpoint events in increasing angle around the origin,
keeps the occluders crossing the current ray in a front-to-back list and
emits a vertex whenever the occluder bounding the view changes.

At each event the blocker before and after the membership update are
compared. When they differ, the ray's hit on the old blocker and then on
the new one are emitted, which covers both a new occluder appearing in
front and the current one ending. When they are the same the endpoint is
hidden (behind the blocker, or excluded by terrain rules) and nothing is
emitted.

A blocker of None means the ray reaches the radius circle; runs of such
rays are filled with arc padding.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from view_polygon.angles import AngleWindow
from view_polygon.clipping import arc_padding, clip_occluders_to_circle, full_circle
from view_polygon.config import SweepConfig
from view_polygon.endpoints import EndpointIndex, SweepEvent
from view_polygon.errors import SweepError, SweepIterationLimitError
from view_polygon.geometry import (
    Point,
    angle_from_origin,
    direction_from_angle,
    point_along,
    points_almost_equal,
    ray_segment_hit,
)
from view_polygon.observer import SweepObserver, SweepState
from view_polygon.occluder_list import PotentialOccluderList
from view_polygon.occluders import (
    Occluder,
    boundary_occluders,
    derive_bounds,
    filter_occluders,
    split_at_intersections,
)
from view_polygon.ordering import terrain_excluded

logger = logging.getLogger(__name__)

# Extra sweep steps allowed on top of two per event and two per occluder
ITERATION_SLACK = 8


def prepare_occluders(origin: Point, occluders: Sequence[Occluder], config: SweepConfig) -> List[Occluder]:
    """
    Turn caller occluders into the set the sweep runs on.

    Filters by channel, adds the world boundary (explicit, or derived for
    unlimited-radius sweeps), clips to the radius and splits at mutual
    intersections.

    Parameters:
        origin: Sweep origin
        occluders: Occluders with unique ids
        config: Sweep configuration

    Returns:
        Prepared occluders; empty when nothing can bound the view
    """
    kept = filter_occluders(occluders, config.channel, origin)

    if config.has_radius:
        if config.bounds is not None:
            kept = kept + boundary_occluders(config.bounds, config.channel)
        kept = clip_occluders_to_circle(kept, origin, config.radius)
    else:
        bounds = config.bounds
        if bounds is None:
            if not kept:
                return []
            bounds = derive_bounds(origin, kept)
            logger.debug("Derived world bounds %s", bounds)
        kept = kept + boundary_occluders(bounds, config.channel)

    return split_at_intersections(kept)


@dataclass
class SweepOutcome:
    """
    Raw result of a sweep.

    Attributes:
        vertices: Polygon vertices in sweep order
        complete: False if the sweep stopped early
        error: Description of the failure for incomplete sweeps
        n_events: Number of endpoint events processed
    """
    vertices: List[Point] = field(default_factory=list)
    complete: bool = True
    error: Optional[str] = None
    n_events: int = 0


class SweepEngine:
    """
    One visibility sweep from a single origin.

    Parameters:
        origin: Sweep origin
        occluders: Caller occluders with unique ids
        config: Sweep configuration
        observer: Optional hooks invoked during the sweep
    """

    def __init__(
        self,
        origin: Point,
        occluders: Sequence[Occluder],
        config: SweepConfig,
        observer: Optional[SweepObserver] = None,
    ):
        self.origin = origin
        self.config = config
        self.observer = observer if observer is not None else SweepObserver()
        self.window = AngleWindow.from_degrees(config.angle, config.rotation, config.is_limited)
        self.radius = config.radius if config.has_radius else None
        self.occluders = prepare_occluders(origin, occluders, config)
        self.index = EndpointIndex.build(origin, self.occluders, self.window)
        self.potential = PotentialOccluderList(origin, config.channel)
        self.vertices: List[Point] = []

    # -------------------------------------------------------------------------
    # Driver
    # -------------------------------------------------------------------------

    def run(self) -> SweepOutcome:
        """
        Run the sweep.

        SweepError raised while sweeping is logged and turned into a partial
        outcome holding the vertices emitted so far.
        """
        outcome = SweepOutcome()
        if self.radius is None and not self.index.occluders:
            logger.debug("Nothing bounds the view; returning an empty polygon")
            self.observer.on_sweep_end(0, True)
            return outcome

        events = self.index.events()
        outcome.n_events = len(events)
        limit = self.config.max_iterations
        if limit is None:
            limit = 2 * (len(events) + len(self.index.occluders)) + ITERATION_SLACK

        self.observer.on_sweep_start(self.origin, len(events))
        current: Optional[SweepEvent] = None
        i = -1
        # One step per event plus one per list insertion or removal
        steps = 0
        try:
            self.potential.add_occluders(self.index.seeds())
            self._start()
            for i, current in enumerate(events):
                if steps + 1 > limit:
                    raise SweepIterationLimitError(limit)
                steps += 1 + self._process(i, current)
            self._close()
        except SweepError as exc:
            if current is None:
                logger.error("Sweep from %s aborted before the first event: %s", self.origin, exc)
            else:
                point = current.representative.point
                logger.error(
                    "Sweep from %s aborted at event %d (angle %.6f, point (%.3f, %.3f)): %s",
                    self.origin, i, current.angle, point.x, point.y, exc,
                )
            outcome.complete = False
            outcome.error = str(exc)

        outcome.vertices = self.vertices
        logger.debug(
            "Sweep finished: %d event(s), %d vertices, complete=%s",
            outcome.n_events, len(self.vertices), outcome.complete,
        )
        self.observer.on_sweep_end(len(self.vertices), outcome.complete)
        return outcome

    # -------------------------------------------------------------------------
    # Event handling
    # -------------------------------------------------------------------------

    def _start(self) -> None:
        if not self.window.is_limited:
            return
        self._emit(self.origin, SweepState.START)
        direction = direction_from_angle(self.window.a_min)
        self._emit(self._hit(self.potential.blocker(), direction), SweepState.START)

    def _process(self, index: int, event: SweepEvent) -> int:
        """Handle one event; returns the number of list insertions and removals."""
        rep = event.representative
        direction = (rep.point.x - self.origin.x, rep.point.y - self.origin.y)

        before = self.potential.blocker()
        removed, added = self.potential.update_walls_from_event(
            [(ep.point, ep.occluders) for ep in event.endpoints]
        )
        after = self.potential.blocker()
        changes = len(removed) + len(added)

        if after is before:
            if terrain_excluded(rep.occluders, self.config.channel, self.origin):
                state = SweepState.TERRAIN_EXCLUDED
            else:
                state = SweepState.BEHIND
            self.observer.on_endpoint(index, event, state)
            return changes

        if before is not None and any(occ is before for occ in removed):
            state = SweepState.END_OF_WALL
        else:
            state = SweepState.IN_FRONT
        self.observer.on_endpoint(index, event, state)

        hit_before = self._hit(before, direction, event)
        if before is None:
            self._pad_to(hit_before)
        self._emit(hit_before, state)
        self._emit(self._hit(after, direction, event), state)
        return changes

    def _close(self) -> None:
        blocker = self.potential.blocker()

        if self.window.is_limited:
            hit = self._hit(blocker, direction_from_angle(self.window.a_max))
            if blocker is None:
                self._pad_to(hit)
            self._emit(hit, SweepState.BOUNDARY_END)
            self._emit(self.origin, SweepState.BOUNDARY_END)
            return

        if not self.vertices:
            if blocker is None and self.radius is not None:
                points = full_circle(
                    self.origin, self.radius, self.window.a_min, self.config.density, self.config.padding
                )
                self.observer.on_padding(points)
                for point in points:
                    self._emit(point, SweepState.CLOSE)
            return

        if blocker is None and self.radius is not None:
            first, last = self.vertices[0], self.vertices[-1]
            padding = arc_padding(
                self.origin,
                self.radius,
                angle_from_origin(self.origin, last),
                angle_from_origin(self.origin, first),
                self.config.density,
                self.config.padding,
                full_turn_if_equal=len(self.vertices) == 1,
            )
            self._emit_padding(padding)

        if len(self.vertices) > 1 and points_almost_equal(self.vertices[0], self.vertices[-1]):
            self.vertices.pop()

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _hit(
        self,
        blocker: Optional[Occluder],
        direction: Tuple[float, float],
        event: Optional[SweepEvent] = None,
    ) -> Point:
        """Where the ray in ``direction`` meets the blocker, or the radius circle."""
        if blocker is None:
            if self.radius is None:
                raise SweepError(
                    f"ray at angle {math.atan2(direction[1], direction[0]):.6f} is not bounded by any occluder"
                )
            return point_along(self.origin, direction, self.radius)
        if event is not None:
            for endpoint in event.endpoints:
                if blocker.a == endpoint.point or blocker.b == endpoint.point:
                    return endpoint.point
        return ray_segment_hit(self.origin, direction, blocker.a, blocker.b)

    def _emit(self, point: Point, state: SweepState) -> None:
        if self.vertices and points_almost_equal(self.vertices[-1], point):
            return
        self.vertices.append(point)
        self.observer.on_vertex(point, state)

    def _emit_padding(self, points: List[Point]) -> None:
        if not points:
            return
        self.observer.on_padding(points)
        for point in points:
            self._emit(point, SweepState.PADDING)

    def _pad_to(self, target: Point) -> None:
        """Arc padding from the last vertex to ``target``, both on the radius circle."""
        if not self.vertices or self.radius is None:
            return
        last = self.vertices[-1]
        if points_almost_equal(last, self.origin) or points_almost_equal(last, target):
            return
        padding = arc_padding(
            self.origin,
            self.radius,
            angle_from_origin(self.origin, last),
            angle_from_origin(self.origin, target),
            self.config.density,
            self.config.padding,
        )
        self._emit_padding(padding)


def sweep(
    origin: Point,
    occluders: Sequence[Occluder],
    config: SweepConfig,
    observer: Optional[SweepObserver] = None,
) -> SweepOutcome:
    """Convenience wrapper: build a SweepEngine and run it."""
    return SweepEngine(origin, occluders, config, observer).run()
