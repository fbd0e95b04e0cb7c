"""
Occluder model
==============

A single uniform record describes everything that can block the sweep:
user walls, world boundary edges and the fragments left after radius
clipping. The ``kind`` tag tells them apart; the geometry and blocking
payload is the same for all of them.

This module also holds the preprocessing steps that operate on whole
occluder lists: the inclusion filter, world boundary generation and
splitting at mutual intersections.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Hashable, Iterable, List, Mapping, Sequence
import numpy as np
from numpy.typing import NDArray

from view_polygon.geometry import POINT_EPSILON, Point, orientation, points_almost_equal

logger = logging.getLogger(__name__)


class BlockingType(Enum):
    """How an occluder blocks one channel."""
    NONE = "none"
    NORMAL = "normal"
    # Partial occluder: vision passes through the first one along a ray
    TERRAIN = "terrain"


class Direction(Enum):
    """Side of the directed line a -> b the origin must be on for blocking."""
    NONE = "none"
    LEFT = "left"
    RIGHT = "right"


class OccluderKind(Enum):
    WALL = "wall"
    BOUNDARY = "boundary"
    RADIUS_FRAGMENT = "radius_fragment"


def _coerce_blocking(blocking: Mapping[str, BlockingType | str]) -> dict[str, BlockingType]:
    result = {}
    for channel, value in blocking.items():
        if not isinstance(channel, str):
            raise ValueError(f"blocking channel names must be strings, got {channel!r}")
        result[channel] = value if isinstance(value, BlockingType) else BlockingType(value)
    return result


@dataclass(frozen=True, eq=False)
class Occluder:
    """
    Line-segment occluder.

    Attributes:
        a, b: Segment endpoints
        blocking: Mapping of channel name to BlockingType. Channels not listed
            do not block.
        id: Identifier unique within one sweep input. Assigned by the API
            when left as None.
        direction: One-directional blocking relative to a -> b
        is_open: Open occluders (e.g. open doors) never block
        kind: Discriminant tag
        source_id: Id of the caller's occluder a derived piece came from
    """
    a: Point
    b: Point
    blocking: Mapping[str, BlockingType] = field(
        default_factory=lambda: {"sight": BlockingType.NORMAL}
    )
    id: Hashable = None
    direction: Direction = Direction.NONE
    is_open: bool = False
    kind: OccluderKind = OccluderKind.WALL
    source_id: Hashable = None

    def __post_init__(self) -> None:
        # Use object.__setattr__ because the dataclass is frozen
        object.__setattr__(self, "a", Point.of(self.a))
        object.__setattr__(self, "b", Point.of(self.b))
        object.__setattr__(self, "blocking", _coerce_blocking(self.blocking))
        if not isinstance(self.direction, Direction):
            object.__setattr__(self, "direction", Direction(self.direction))
        if not isinstance(self.kind, OccluderKind):
            object.__setattr__(self, "kind", OccluderKind(self.kind))
        if self.source_id is None:
            object.__setattr__(self, "source_id", self.id)

    @classmethod
    def wall(
        cls,
        a,
        b,
        id: Hashable = None,
        sight: BlockingType | str = BlockingType.NORMAL,
        **kwargs,
    ) -> Occluder:
        """Convenience constructor for a wall blocking only the sight channel."""
        return cls(a=a, b=b, blocking={"sight": sight}, id=id, **kwargs)

    def blocking_for(self, channel: str) -> BlockingType:
        return self.blocking.get(channel, BlockingType.NONE)

    def is_terrain(self, channel: str) -> bool:
        return self.blocking_for(channel) is BlockingType.TERRAIN

    def other_end(self, point: Point) -> Point:
        """Endpoint opposite to ``point`` (which must be one of the endpoints)."""
        if self.a == point:
            return self.b
        if self.b == point:
            return self.a
        # Merged endpoints may differ by rounding noise
        if points_almost_equal(self.a, point):
            return self.b
        return self.a

    def has_endpoint(self, point: Point) -> bool:
        return points_almost_equal(self.a, point) or points_almost_equal(self.b, point)

    @property
    def length_squared(self) -> float:
        dx = self.b.x - self.a.x
        dy = self.b.y - self.a.y
        return dx * dx + dy * dy

    def derive(self, a: Point, b: Point, suffix: Hashable, kind: OccluderKind | None = None) -> Occluder:
        """New occluder covering part of this one, inheriting its blocking data."""
        return replace(
            self,
            a=a,
            b=b,
            id=(self.id, suffix),
            kind=self.kind if kind is None else kind,
            source_id=self.source_id,
        )

    def __repr__(self) -> str:
        return (
            f"Occluder(id={self.id!r}, a=({self.a.x:.3f}, {self.a.y:.3f}), "
            f"b=({self.b.x:.3f}, {self.b.y:.3f}), kind={self.kind.value})"
        )


def occluders_from_array(
    segments: NDArray[np.floating],
    channel: str = "sight",
    blocking: BlockingType = BlockingType.NORMAL,
) -> List[Occluder]:
    """
    Build walls from an array of segments.

    Parameters:
        segments: Array of shape (N, 2, 2); segments[i] = [[ax, ay], [bx, by]]
        channel: Channel the walls block
        blocking: Blocking type for that channel

    Returns:
        List of Occluders with ids 0..N-1
    """
    arr = np.asarray(segments, dtype=np.float64)
    if arr.ndim != 3 or arr.shape[1:] != (2, 2):
        raise ValueError(f"segments must have shape (N, 2, 2), got {arr.shape}")
    return [
        Occluder(a=Point(*row[0]), b=Point(*row[1]), blocking={channel: blocking}, id=i)
        for i, row in enumerate(arr.tolist())
    ]


# =============================================================================
# Inclusion filter
# =============================================================================

def faces_origin(occluder: Occluder, origin: Point) -> bool:
    """
    True when a one-directional occluder blocks from the origin's side.

    LEFT blocks only when the origin is left of a -> b, RIGHT only when it is
    right. Origins exactly on the line are not blocked.
    """
    if occluder.direction is Direction.NONE:
        return True
    side = orientation(occluder.a, occluder.b, origin)
    if occluder.direction is Direction.LEFT:
        return side > 0
    return side < 0


def blocks_channel(occluder: Occluder, channel: str, origin: Point) -> bool:
    """Whether the occluder takes part in a sweep for this channel and origin."""
    if occluder.is_open:
        return False
    if occluder.blocking_for(channel) is BlockingType.NONE:
        return False
    return faces_origin(occluder, origin)


def filter_occluders(occluders: Iterable[Occluder], channel: str, origin: Point) -> List[Occluder]:
    """Keep the occluders that block ``channel`` as seen from ``origin``."""
    kept = []
    skipped = 0
    for occluder in occluders:
        if blocks_channel(occluder, channel, origin):
            kept.append(occluder)
        else:
            skipped += 1
    if skipped:
        logger.debug("Inclusion filter skipped %d occluder(s) for channel %r", skipped, channel)
    return kept


# =============================================================================
# World boundary
# =============================================================================

# Relative margin added around the derived bounding box
BOUNDS_MARGIN_RATIO = 0.5


def boundary_occluders(bounds: tuple[float, float, float, float], channel: str) -> List[Occluder]:
    """
    Four edges of the world rectangle as opaque BOUNDARY occluders.

    Edges run counter-clockwise (in a y-up frame) so consecutive edges share
    corner endpoints.
    """
    x_min, y_min, x_max, y_max = bounds
    corners = [
        Point(x_min, y_min),
        Point(x_max, y_min),
        Point(x_max, y_max),
        Point(x_min, y_max),
    ]
    return [
        Occluder(
            a=corners[i],
            b=corners[(i + 1) % 4],
            blocking={channel: BlockingType.NORMAL},
            id=("bounds", i),
            kind=OccluderKind.BOUNDARY,
        )
        for i in range(4)
    ]


def derive_bounds(origin: Point, occluders: Sequence[Occluder]) -> tuple[float, float, float, float]:
    """
    World rectangle enclosing the origin and every occluder, with a margin.

    Used when an unlimited-radius sweep has no explicit bounds, so that every
    ray still ends on something.
    """
    coords = [origin]
    for occluder in occluders:
        coords.append(occluder.a)
        coords.append(occluder.b)
    arr = np.asarray(coords, dtype=np.float64)
    lo = arr.min(axis=0)
    hi = arr.max(axis=0)
    extent = float(np.max(hi - lo))
    margin = max(extent * BOUNDS_MARGIN_RATIO, 1.0)
    return (float(lo[0] - margin), float(lo[1] - margin), float(hi[0] + margin), float(hi[1] + margin))


def contains_strictly(bounds: tuple[float, float, float, float], point: Point) -> bool:
    x_min, y_min, x_max, y_max = bounds
    return x_min < point.x < x_max and y_min < point.y < y_max


# =============================================================================
# Intersection splitting
# =============================================================================

def split_at_intersections(occluders: Sequence[Occluder]) -> List[Occluder]:
    """
    Split occluders where they cross or touch another occluder's interior.

    Every pair is tested at once with numpy. An occluder is cut at each
    parameter t strictly inside (0, 1) where another occluder meets it,
    either crossing (X) or ending on it (T-junction). Parallel and collinear
    pairs are left alone.

    The cut points of a crossing are computed once per segment; the two
    copies differ only by rounding and are merged later by the endpoint
    index.

    Parameters:
        occluders: Occluders to split

    Returns:
        New list where no two occluders intersect except at endpoints
    """
    n = len(occluders)
    if n < 2:
        return list(occluders)

    a = np.array([occ.a for occ in occluders], dtype=np.float64)
    b = np.array([occ.b for occ in occluders], dtype=np.float64)
    d = b - a
    lengths = np.hypot(d[:, 0], d[:, 1])

    # denom[i, j] = d_i x d_j; diff[i, j] = a_j - a_i
    denom = d[:, None, 0] * d[None, :, 1] - d[:, None, 1] * d[None, :, 0]
    diff = a[None, :, :] - a[:, None, :]
    with np.errstate(divide="ignore", invalid="ignore"):
        t = (diff[..., 0] * d[None, :, 1] - diff[..., 1] * d[None, :, 0]) / denom
        u = (diff[..., 0] * d[:, None, 1] - diff[..., 1] * d[:, None, 0]) / denom

    # Parametric tolerances equivalent to POINT_EPSILON along each segment
    safe_lengths = np.where(lengths > 0, lengths, np.inf)
    tol = POINT_EPSILON / safe_lengths
    tol_i = tol[:, None]
    tol_j = tol[None, :]

    scale = lengths[:, None] * lengths[None, :]
    not_parallel = np.abs(denom) > 1e-12 * scale
    interior_i = (t > tol_i) & (t < 1.0 - tol_i)
    on_j = (u >= -tol_j) & (u <= 1.0 + tol_j)
    cut = not_parallel & interior_i & on_j
    np.fill_diagonal(cut, False)

    if not cut.any():
        return list(occluders)

    result: List[Occluder] = []
    n_split = 0
    for i, occluder in enumerate(occluders):
        cut_params = t[i, cut[i]]
        if cut_params.size == 0:
            result.append(occluder)
            continue
        params = np.unique(np.concatenate(([0.0], np.sort(cut_params), [1.0])))
        points = [occluder.a]
        for param in params[1:-1]:
            points.append(Point(float(a[i, 0] + param * d[i, 0]), float(a[i, 1] + param * d[i, 1])))
        points.append(occluder.b)
        for k in range(len(points) - 1):
            if points_almost_equal(points[k], points[k + 1]):
                continue
            result.append(occluder.derive(points[k], points[k + 1], suffix=k))
        n_split += 1

    logger.debug("Split %d occluder(s) at intersections: %d -> %d", n_split, n, len(result))
    return result
