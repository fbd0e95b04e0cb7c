"""
Tests for the public API - compute_visibility_polygon().

- worked scenarios (single wall, terrain pair, bare radius, limited angle)
- terrain rule around shared endpoints
- duplicate and overlapping collinear walls
- result container and input validation
"""

import math

import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_array_equal

from view_polygon import (
    BlockingType,
    Direction,
    Occluder,
    RecordingObserver,
    SweepConfig,
    SweepState,
    ValidationError,
    VisibilityResult,
    compute_visibility_polygon,
)


def make_wall(ax, ay, bx, by, id=None, **kwargs) -> Occluder:
    return Occluder.wall((ax, ay), (bx, by), id=id, **kwargs)


def point_in_polygon(point, polygon) -> bool:
    """Even-odd ray casting test."""
    x, y = point
    inside = False
    n = len(polygon)
    for i in range(n):
        x1, y1 = polygon[i]
        x2, y2 = polygon[(i + 1) % n]
        if (y1 > y) != (y2 > y):
            x_cross = x1 + (y - y1) * (x2 - x1) / (y2 - y1)
            if x < x_cross:
                inside = not inside
    return inside


def contains_vertex(vertices, point, atol=1e-9) -> bool:
    return bool(np.any(np.all(np.abs(vertices - np.asarray(point)) <= atol, axis=1)))


def polygon_area(vertices) -> float:
    """Shoelace area (absolute value)."""
    x, y = vertices[:, 0], vertices[:, 1]
    return 0.5 * abs(float(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1))))


SINGLE_WALL = np.array([[[10.0, -5.0], [10.0, 5.0]]])


# =============================================================================
# Worked scenarios
# =============================================================================

class TestScenarios:
    """End-to-end checks of the documented scenarios."""

    def test_single_wall_shadow(self):
        """Both wall endpoints are vertices and the space behind is excluded."""
        result = compute_visibility_polygon([0.0, 0.0], SINGLE_WALL)
        assert result.complete
        assert_allclose(
            result.vertices,
            [[-5, -10], [15, -10], [15, -7.5], [10, -5], [10, 5], [15, 7.5], [15, 10], [-5, 10]],
            atol=1e-9,
        )
        assert point_in_polygon((5.0, 0.0), result.vertices)
        assert not point_in_polygon((12.0, 0.0), result.vertices)
        assert point_in_polygon((12.0, 9.0), result.vertices)

    def test_terrain_pair_apex_hidden(self):
        """A symmetric terrain '^' hides its apex; making one side opaque shows it."""
        apex = (0.0, 20.0)
        terrain = [
            make_wall(-10, 10, 0, 20, id="t1", sight=BlockingType.TERRAIN),
            make_wall(0, 20, 10, 10, id="t2", sight=BlockingType.TERRAIN),
        ]
        result = compute_visibility_polygon([0.0, 0.0], terrain)
        assert not contains_vertex(result.vertices, apex)
        assert_allclose(result.vertices, [[-20, -10], [20, -10], [20, 30], [-20, 30]])

        mixed = [
            make_wall(-10, 10, 0, 20, id="t1", sight=BlockingType.NORMAL),
            make_wall(0, 20, 10, 10, id="t2", sight=BlockingType.TERRAIN),
        ]
        result = compute_visibility_polygon([0.0, 0.0], mixed)
        assert contains_vertex(result.vertices, apex)

    def test_radius_without_occluders(self):
        """Every vertex lies on the radius circle."""
        result = compute_visibility_polygon([3.0, -4.0], [], radius=25.0)
        assert len(result) == 2 * SweepConfig().density
        distances = np.hypot(result.vertices[:, 0] - 3.0, result.vertices[:, 1] + 4.0)
        assert_allclose(distances, 25.0)

    def test_radius_bezier_padding_close_to_circle(self):
        result = compute_visibility_polygon([0.0, 0.0], [], radius=25.0, padding="bezier")
        distances = np.hypot(result.vertices[:, 0], result.vertices[:, 1])
        assert_allclose(distances, 25.0, rtol=3e-4)

    def test_limited_angle_start_ray_hits_wall(self):
        """The start-ray vertex is the ray/wall intersection, not a wall endpoint."""
        walls = np.array([[[10.0, -20.0], [10.0, 0.0]]])
        result = compute_visibility_polygon([0.0, 0.0], walls, angle=90.0, rotation=-90.0)
        assert result.is_limited
        assert_allclose(result.vertices[0], [0, 0])
        assert_allclose(result.vertices[1], [10, -10], atol=1e-9)
        assert not contains_vertex(result.vertices, (10, -20))
        assert_allclose(result.vertices[-1], [0, 0])


# =============================================================================
# Terrain rule
# =============================================================================

class TestTerrainEndpoints:
    """Shared terrain endpoints beyond the symmetric pair."""

    def test_three_terrain_walls_keep_endpoint(self):
        walls = [
            make_wall(-10, 10, 0, 20, id="t1", sight=BlockingType.TERRAIN),
            make_wall(0, 20, 10, 10, id="t2", sight=BlockingType.TERRAIN),
            make_wall(0, 20, 5, 30, id="t3", sight=BlockingType.TERRAIN),
        ]
        observer = RecordingObserver()
        result = compute_visibility_polygon([0.0, 0.0], walls, observer=observer)
        states = {point: state for _, _, point, state in observer.events}
        assert states[(0.0, 20.0)] is not SweepState.TERRAIN_EXCLUDED
        assert contains_vertex(result.vertices, (0, 20))

    def test_directional_opaque_wall_facing_away(self):
        """An opaque wall that does not face the origin leaves the terrain alone."""
        walls = [
            make_wall(-10, 10, 0, 20, id="t1", sight=BlockingType.TERRAIN),
            make_wall(0, 20, 10, 10, id="w", direction=Direction.LEFT),
        ]
        result = compute_visibility_polygon([0.0, 0.0], walls)
        assert not contains_vertex(result.vertices, (0, 20))

    def test_directional_opaque_wall_facing_origin(self):
        walls = [
            make_wall(-10, 10, 0, 20, id="t1", sight=BlockingType.TERRAIN),
            make_wall(0, 20, 10, 10, id="w", direction=Direction.RIGHT),
        ]
        result = compute_visibility_polygon([0.0, 0.0], walls)
        assert contains_vertex(result.vertices, (0, 20))
        assert contains_vertex(result.vertices, (10, 10))


# =============================================================================
# Behavior
# =============================================================================

class TestBehavior:
    """General properties of computed polygons."""

    def test_empty_without_occluders_or_radius(self):
        result = compute_visibility_polygon([0.0, 0.0], [])
        assert not result
        assert result.vertices.shape == (0, 2)
        assert result.complete

    def test_deterministic(self):
        rng = np.random.default_rng(11)
        segments = rng.uniform(-50, 50, size=(30, 2, 2))
        first = compute_visibility_polygon([0.5, 0.25], segments, radius=40.0)
        second = compute_visibility_polygon([0.5, 0.25], segments, radius=40.0)
        assert_array_equal(first.vertices, second.vertices)

    def test_translation_invariant(self):
        base = compute_visibility_polygon([0.0, 0.0], SINGLE_WALL)
        shifted = compute_visibility_polygon([100.0, 50.0], SINGLE_WALL + np.array([100.0, 50.0]))
        assert_allclose(shifted.vertices, base.vertices + np.array([100.0, 50.0]), atol=1e-9)

    def test_no_consecutive_duplicates(self):
        rng = np.random.default_rng(3)
        segments = rng.uniform(-30, 30, size=(20, 2, 2))
        result = compute_visibility_polygon([0.1, 0.2], segments)
        verts = result.vertices
        gaps = np.hypot(*(verts - np.roll(verts, 1, axis=0)).T)
        assert np.all(gaps > 1e-6)

    def test_co_angular_endpoints_all_update_list(self):
        """
        Every endpoint on a shared ray updates the list, not only the nearest.

        The far wall's corner lying on the same ray still becomes a vertex.
        """
        walls = [make_wall(10, 10, 0, 15, id="near"), make_wall(20, 5, 20, 20, id="far")]
        result = compute_visibility_polygon([0.0, 0.0], walls)
        assert result.complete
        assert contains_vertex(result.vertices, (10, 10))
        assert contains_vertex(result.vertices, (20, 20))

    def test_crossing_walls_are_split(self):
        """Crossing walls still give a complete polygon."""
        walls = [make_wall(5, -5, 15, 5, id="a"), make_wall(15, -5, 5, 5, id="b")]
        result = compute_visibility_polygon([0.0, 0.0], walls)
        assert result.complete
        assert contains_vertex(result.vertices, (5, -5))
        assert contains_vertex(result.vertices, (5, 5))
        assert not contains_vertex(result.vertices, (15, 5))

    def test_channel_selects_walls(self):
        """A sound-only wall does not block sight."""
        wall = Occluder(a=(10, -5), b=(10, 5), id="glass", blocking={"sight": "none", "sound": "normal"})
        bounds = (-20, -20, 20, 20)
        sight = compute_visibility_polygon([0.0, 0.0], [wall], bounds=bounds)
        sound = compute_visibility_polygon([0.0, 0.0], [wall], bounds=bounds, channel="sound")
        assert len(sight) == 4
        assert contains_vertex(sound.vertices, (10, 5))

    def test_observer_sees_vertices(self):
        observer = RecordingObserver()
        result = compute_visibility_polygon([0.0, 0.0], SINGLE_WALL, observer=observer)
        assert len(observer.vertices) == len(result)
        assert observer.complete is True


# =============================================================================
# Duplicate and overlapping walls
# =============================================================================

class TestOverlappingWalls:
    """Walls drawn twice, or folded back along the same line."""

    BOUNDS = (-60.0, -60.0, 60.0, 60.0)

    @pytest.mark.parametrize("copy", [(10, -5, 13, 7), (13, 7, 10, -5)], ids=["same", "reversed"])
    def test_duplicate_wall_matches_single(self, copy):
        single = compute_visibility_polygon(
            [0.0, 0.0], [make_wall(10, -5, 13, 7, id="a")], bounds=self.BOUNDS
        )
        doubled = compute_visibility_polygon(
            [0.0, 0.0], [make_wall(10, -5, 13, 7, id="a"), make_wall(*copy, id="b")], bounds=self.BOUNDS
        )
        assert doubled.complete
        assert doubled.error is None
        assert_allclose(doubled.vertices, single.vertices)

    def test_folded_wall_cut_by_third(self):
        """A wall doubling back on itself, both halves cut by one crossing wall."""
        bounds = (-70.0, -50.0, 60.0, 55.0)
        base = [make_wall(-30, 15, 30, 0, id="line"), make_wall(20, 10, 15, -15, id="cross")]
        fold = make_wall(30, 0, -10, 10, id="fold")
        plain = compute_visibility_polygon([0.0, 0.0], base, bounds=bounds)
        folded = compute_visibility_polygon([0.0, 0.0], base + [fold], bounds=bounds)
        assert folded.complete
        assert math.isclose(polygon_area(folded.vertices), polygon_area(plain.vertices), rel_tol=1e-9)


# =============================================================================
# Result container
# =============================================================================

class TestVisibilityResult:
    """Tests for VisibilityResult."""

    def test_points_flat(self):
        result = compute_visibility_polygon([0.0, 0.0], SINGLE_WALL)
        assert result.points.shape == (2 * len(result),)
        assert_allclose(result.points[:4], [-5, -10, 15, -10])

    def test_dtype_float64(self):
        result = compute_visibility_polygon([0, 0], SINGLE_WALL.astype(np.float32))
        assert result.vertices.dtype == np.float64

    def test_bool_and_len(self):
        empty = VisibilityResult(vertices=np.zeros((0, 2)))
        assert not empty
        assert len(empty) == 0

    def test_n_events(self):
        result = compute_visibility_polygon([0.0, 0.0], SINGLE_WALL)
        assert result.n_events == 6


# =============================================================================
# Validation
# =============================================================================

class TestValidation:
    """Input validation."""

    def test_config_and_overrides(self):
        config = SweepConfig(radius=10.0)
        via_config = compute_visibility_polygon([0.0, 0.0], SINGLE_WALL, config=config)
        via_override = compute_visibility_polygon([0.0, 0.0], SINGLE_WALL, radius=10.0)
        assert_array_equal(via_config.vertices, via_override.vertices)

    def test_override_on_top_of_config(self):
        config = SweepConfig(radius=10.0, density=4)
        result = compute_visibility_polygon([0.0, 0.0], [], config=config, density=8)
        assert len(result) == 16

    def test_wrong_config_type(self):
        with pytest.raises(ValidationError, match="SweepConfig"):
            compute_visibility_polygon([0.0, 0.0], SINGLE_WALL, config={"radius": 10})

    def test_unknown_override(self):
        with pytest.raises(ValidationError, match="unknown"):
            compute_visibility_polygon([0.0, 0.0], SINGLE_WALL, fov=90)

    def test_invalid_override_value(self):
        with pytest.raises(ValidationError):
            compute_visibility_polygon([0.0, 0.0], SINGLE_WALL, angle=0.0)

    def test_origin_shape(self):
        with pytest.raises(ValueError):
            compute_visibility_polygon([0.0, 0.0, 0.0], SINGLE_WALL)

    def test_origin_not_finite(self):
        with pytest.raises(ValueError):
            compute_visibility_polygon([math.inf, 0.0], SINGLE_WALL)

    def test_origin_outside_bounds(self):
        with pytest.raises(ValueError, match="inside bounds"):
            compute_visibility_polygon([50.0, 0.0], SINGLE_WALL, bounds=(-10, -10, 10, 10))

    def test_segments_shape(self):
        with pytest.raises(ValueError, match=r"\(N, 2, 2\)"):
            compute_visibility_polygon([0.0, 0.0], np.zeros((3, 2)))

    def test_non_occluder_items(self):
        with pytest.raises(ValueError, match="occluders\\[1\\]"):
            compute_visibility_polygon([0.0, 0.0], [make_wall(1, 0, 1, 1), ((2, 0), (2, 1))])

    def test_duplicate_ids(self):
        walls = [make_wall(10, -5, 10, 5, id="w"), make_wall(-10, -5, -10, 5, id="w")]
        with pytest.raises(ValueError, match="duplicate"):
            compute_visibility_polygon([0.0, 0.0], walls)

    def test_anonymous_walls_get_index_ids(self):
        walls = [make_wall(10, -5, 10, 5), make_wall(-10, -5, -10, 5)]
        result = compute_visibility_polygon([0.0, 0.0], walls)
        assert result.complete
        assert contains_vertex(result.vertices, (-10, 5))
