"""
Public API for computing visibility polygons.
"""

from dataclasses import dataclass, replace
from typing import Any, List, Optional, Sequence, Union
import numpy as np
from numpy.typing import NDArray

from view_polygon.config import SweepConfig, ValidationError
from view_polygon.geometry import Point
from view_polygon.observer import SweepObserver
from view_polygon.occluders import Occluder, contains_strictly, occluders_from_array
from view_polygon.sweep import SweepEngine


@dataclass
class VisibilityResult:
    """
    Visibility polygon computed from one origin.

    Attributes:
        vertices: Polygon vertices in sweep order, shape (M, 2), float64.
            For angle-limited sweeps the origin is the first and last vertex;
            full sweeps are implicitly closed (last connects to first).
        complete: False when the sweep stopped early; vertices then hold the
            partial polygon built so far
        error: Description of the failure for incomplete sweeps
        is_limited: True for angle-limited sweeps
        n_events: Number of endpoint events processed
    """
    vertices: NDArray[np.float64]
    complete: bool = True
    error: Optional[str] = None
    is_limited: bool = False
    n_events: int = 0

    def __bool__(self) -> bool:
        """Returns True if the polygon has any vertices."""
        return self.vertices.shape[0] > 0

    def __len__(self) -> int:
        return int(self.vertices.shape[0])

    @property
    def points(self) -> NDArray[np.float64]:
        """Flat vertex coordinates [x0, y0, x1, y1, ...]."""
        return self.vertices.reshape(-1)


def _as_occluders(occluders: Any, channel: str) -> List[Occluder]:
    if isinstance(occluders, np.ndarray):
        return occluders_from_array(occluders, channel=channel)
    if not isinstance(occluders, (list, tuple)):
        raise ValueError("occluders must be a list of Occluder or an (N, 2, 2) numpy array")
    for i, occluder in enumerate(occluders):
        if not isinstance(occluder, Occluder):
            raise ValueError(f"occluders[{i}] must be an Occluder, got {type(occluder).__name__}")
    return list(occluders)


def _assign_ids(occluders: List[Occluder]) -> List[Occluder]:
    """Give anonymous occluders their list index as id and check uniqueness."""
    result = []
    seen = set()
    for i, occluder in enumerate(occluders):
        if occluder.id is None:
            occluder = replace(occluder, id=i, source_id=i)
        if occluder.id in seen:
            raise ValueError(f"duplicate occluder id: {occluder.id!r}")
        seen.add(occluder.id)
        result.append(occluder)
    return result


def compute_visibility_polygon(
    origin: Union[NDArray[np.floating], Sequence[float]],
    occluders: Union[Sequence[Occluder], NDArray[np.floating]],
    config: Optional[SweepConfig] = None,
    observer: Optional[SweepObserver] = None,
    **overrides: Any,
) -> VisibilityResult:
    """
    Compute the region visible from ``origin`` among line-segment occluders.

    The polygon is traced by an angular sweep in increasing angle around the
    origin (counter-clockwise in a y-up frame, clockwise on a y-down screen).
    Limiting the radius replaces unobstructed rays with arcs of the circle;
    limiting the angle restricts the sweep to a wedge whose apex is the origin.

    Parameters:
        origin: (x, y) of the viewer, shape (2,)
        occluders: List of Occluder, or an (N, 2, 2) array of segments that
            become opaque walls for the configured channel
        config: Sweep settings; defaults to SweepConfig()
        observer: Optional hooks invoked during the sweep
        **overrides: SweepConfig fields to override, e.g. radius=100.0

    Returns:
        VisibilityResult with the (M, 2) vertex array. An unlimited sweep
        with no occluders and no bounds yields an empty polygon.

    Raises:
        ValueError: If inputs have invalid shapes or values
        ValidationError: If the configuration is invalid

    Example:
        >>> walls = np.array([[[10, -5], [10, 5]]], dtype=np.float64)
        >>> result = compute_visibility_polygon([0.0, 0.0], walls, radius=50.0)
        >>> result.vertices.shape[1]
        2
    """
    # -------------------------------------------------------------------------
    # Step 1: Input validation
    # -------------------------------------------------------------------------
    if config is None:
        config = SweepConfig()
    elif not isinstance(config, SweepConfig):
        raise ValidationError(f"config must be a SweepConfig, got {type(config).__name__}")
    if overrides:
        config = config.with_overrides(**overrides)

    origin_point = Point.of(origin)
    if config.bounds is not None and not contains_strictly(config.bounds, origin_point):
        raise ValueError(f"origin {tuple(origin_point)} must lie strictly inside bounds {config.bounds}")

    occluder_list = _assign_ids(_as_occluders(occluders, config.channel))

    # -------------------------------------------------------------------------
    # Step 2: Sweep
    # -------------------------------------------------------------------------
    engine = SweepEngine(origin_point, occluder_list, config, observer)
    outcome = engine.run()

    # -------------------------------------------------------------------------
    # Step 3: Package result
    # -------------------------------------------------------------------------
    if outcome.vertices:
        vertices = np.array(outcome.vertices, dtype=np.float64)
    else:
        vertices = np.zeros((0, 2), dtype=np.float64)

    return VisibilityResult(
        vertices=vertices,
        complete=outcome.complete,
        error=outcome.error,
        is_limited=config.is_limited,
        n_events=outcome.n_events,
    )
