"""
Observer hooks for watching a sweep.
"""

from enum import Enum
from typing import Sequence

from view_polygon.endpoints import SweepEvent
from view_polygon.geometry import Point


class SweepState(Enum):
    """How an event or emitted vertex was classified."""
    START = "start"
    IN_FRONT = "in_front"
    END_OF_WALL = "end_of_wall"
    BEHIND = "behind"
    TERRAIN_EXCLUDED = "terrain_excluded"
    BOUNDARY_END = "boundary_end"
    CLOSE = "close"
    PADDING = "padding"


class SweepObserver:
    """
    Base observer; every hook is a no-op.

    Subclass and override the hooks you need. Hooks run synchronously inside
    the sweep and must not modify the objects they receive.
    """

    def on_sweep_start(self, origin: Point, n_events: int) -> None:
        pass

    def on_endpoint(self, index: int, event: SweepEvent, state: SweepState) -> None:
        pass

    def on_vertex(self, point: Point, state: SweepState) -> None:
        pass

    def on_padding(self, points: Sequence[Point]) -> None:
        pass

    def on_sweep_end(self, n_vertices: int, complete: bool) -> None:
        pass


class RecordingObserver(SweepObserver):
    """Keeps every callback in memory, mostly useful in tests."""

    def __init__(self):
        self.events = []
        self.vertices = []
        self.padding = []
        self.complete = None

    def on_endpoint(self, index, event, state):
        self.events.append((index, event.angle, event.representative.point, state))

    def on_vertex(self, point, state):
        self.vertices.append((point, state))

    def on_padding(self, points):
        self.padding.append(list(points))

    def on_sweep_end(self, n_vertices, complete):
        self.complete = complete
