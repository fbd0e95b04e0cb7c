#!/usr/bin/env python3
"""
Profile script for view_polygon to find hot spots in the sweep.
"""

import cProfile
import io
import pstats
import time
from typing import List

import numpy as np
from numpy.typing import NDArray

from view_polygon import BlockingType, Occluder, compute_visibility_polygon


def generate_room_walls(
    center: NDArray[np.float64],
    size: float,
    rng: np.random.Generator,
) -> List[NDArray[np.float64]]:
    """Four walls of a roughly square room, with a doorway cut into one side."""
    half = 0.5 * size * rng.uniform(0.7, 1.3)
    corners = center + half * np.array([[-1, -1], [1, -1], [1, 1], [-1, 1]], dtype=np.float64)
    door_side = rng.integers(4)
    walls = []
    for i in range(4):
        a, b = corners[i], corners[(i + 1) % 4]
        if i == door_side:
            walls.append(np.array([a, a + 0.4 * (b - a)]))
            walls.append(np.array([a + 0.6 * (b - a), b]))
        else:
            walls.append(np.array([a, b]))
    return walls


def generate_typical_workload(
    n_rooms: int = 10,
    n_terrain: int = 10,
    seed: int = 42,
) -> tuple[NDArray[np.float64], List[Occluder]]:
    """
    Generate a typical workload for profiling.
    Simulates a viewer in the middle of a map of rooms and low terrain walls.
    """
    rng = np.random.default_rng(seed)
    origin = np.array([500.0, 500.0])

    occluders: List[Occluder] = []
    for _ in range(n_rooms):
        center = rng.uniform(100.0, 900.0, size=2)
        if np.hypot(*(center - origin)) < 80.0:
            continue
        for wall in generate_room_walls(center, rng.uniform(40.0, 120.0), rng):
            occluders.append(Occluder.wall(wall[0], wall[1], id=len(occluders)))

    for _ in range(n_terrain):
        start = rng.uniform(100.0, 900.0, size=2)
        end = start + rng.uniform(-60.0, 60.0, size=2)
        occluders.append(
            Occluder.wall(start, end, id=len(occluders), sight=BlockingType.TERRAIN)
        )

    return origin, occluders


def run_typical_workload(n_iterations: int = 50) -> None:
    """Run a full-circle sweep over a small map multiple times."""
    for i in range(n_iterations):
        origin, occluders = generate_typical_workload(n_rooms=10, n_terrain=10, seed=i)
        compute_visibility_polygon(origin, occluders)


def run_limited_workload(n_iterations: int = 50) -> None:
    """Run angle- and radius-limited sweeps, as for a torch-lit cone of vision."""
    for i in range(n_iterations):
        origin, occluders = generate_typical_workload(n_rooms=10, n_terrain=10, seed=i)
        compute_visibility_polygon(origin, occluders, angle=90.0, rotation=i * 7.0, radius=250.0)


def run_many_walls_workload(n_iterations: int = 5) -> None:
    """Run the sweep over a large map for profiling."""
    for i in range(n_iterations):
        origin, occluders = generate_typical_workload(n_rooms=100, n_terrain=100, seed=i)
        compute_visibility_polygon(origin, occluders)


def profile_function(func, description: str) -> None:
    """Profile a function and print statistics."""
    print(f"\n{'=' * 60}")
    print(f"Profiling: {description}")
    print('=' * 60)

    start = time.perf_counter()

    profiler = cProfile.Profile()
    profiler.enable()
    func()
    profiler.disable()

    elapsed = time.perf_counter() - start

    s = io.StringIO()
    ps = pstats.Stats(profiler, stream=s).sort_stats('cumulative')
    ps.print_stats(30)
    print(s.getvalue())

    print(f"\nTotal time: {elapsed:.3f}s")


if __name__ == "__main__":
    print("View Polygon Performance Profiling")
    print("=" * 60)

    profile_function(
        lambda: run_typical_workload(50),
        "Typical map (10 rooms, 10 terrain walls, 50 iterations)"
    )

    profile_function(
        lambda: run_limited_workload(50),
        "Cone of vision (90°, radius 250, 50 iterations)"
    )

    profile_function(
        lambda: run_many_walls_workload(5),
        "Large map (100 rooms, 100 terrain walls, 5 iterations)"
    )
