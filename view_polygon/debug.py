"""
Debug Utilities
===============

Logging setup and formatting helpers for inspecting sweeps, plus a
``LoggingObserver`` that reports every sweep hook at DEBUG level.

Usage:
    >>> from view_polygon import compute_visibility_polygon, setup_debug_logging, LoggingObserver
    >>> setup_debug_logging()
    >>> result = compute_visibility_polygon(origin, walls, observer=LoggingObserver())
"""

import logging
import math
from typing import Iterable, Optional, Sequence, Union

import numpy as np
from numpy.typing import NDArray

from view_polygon.endpoints import SweepEvent
from view_polygon.geometry import Point
from view_polygon.observer import SweepObserver, SweepState

PACKAGE_LOGGER = "view_polygon"
LOG_FORMAT = "[%(levelname)s] %(name)s - %(message)s"

logger = logging.getLogger(__name__)

_handler: Optional[logging.Handler] = None


def setup_debug_logging(level: int = logging.DEBUG) -> logging.Logger:
    """
    Send package log records to stderr at ``level``.

    Calling it again only changes the level; a single handler is installed.

    Returns:
        The package logger
    """
    global _handler
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    if _handler is None:
        _handler = logging.StreamHandler()
        _handler.setFormatter(logging.Formatter(LOG_FORMAT))
        package_logger.addHandler(_handler)
    _handler.setLevel(level)
    package_logger.setLevel(level)
    return package_logger


def disable_debug_logging() -> None:
    """Remove the handler installed by setup_debug_logging and reset the level."""
    global _handler
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    if _handler is not None:
        package_logger.removeHandler(_handler)
        _handler = None
    package_logger.setLevel(logging.NOTSET)


def format_point(point: Sequence[float], precision: int = 2) -> str:
    return f"({point[0]:.{precision}f}, {point[1]:.{precision}f})"


def format_angle(angle_rad: float, precision: int = 2) -> str:
    """Angle in both degrees and radians, e.g. '45.00° (0.785 rad)'."""
    return f"{math.degrees(angle_rad):.{precision}f}° ({angle_rad:.3f} rad)"


def format_polygon(vertices: Union[NDArray[np.floating], Sequence[Point]], precision: int = 2, max_vertices: int = 8) -> str:
    """Compact vertex listing, elided in the middle for long polygons."""
    arr = np.asarray(vertices, dtype=np.float64).reshape(-1, 2)
    n = arr.shape[0]
    if n == 0:
        return "[]"
    if n <= max_vertices:
        parts = [format_point(v, precision) for v in arr]
    else:
        head = max_vertices // 2
        tail = max_vertices - head
        parts = [format_point(v, precision) for v in arr[:head]]
        parts.append(f"... {n - max_vertices} more ...")
        parts.extend(format_point(v, precision) for v in arr[-tail:])
    return "[" + ", ".join(parts) + "]"


def log_events(events: Iterable[SweepEvent], level: int = logging.DEBUG) -> None:
    """Log one line per sweep event with its angle and merged endpoints."""
    for i, event in enumerate(events):
        points = ", ".join(format_point(ep.point) for ep in event.endpoints)
        n_occluders = sum(len(ep.occluders) for ep in event.endpoints)
        logger.log(level, "event %d at %s: %s (%d occluder(s))", i, format_angle(event.angle), points, n_occluders)


def log_result(result, level: int = logging.DEBUG) -> None:
    """Log a VisibilityResult summary."""
    status = "complete" if result.complete else f"INCOMPLETE ({result.error})"
    logger.log(
        level,
        "visibility polygon: %d vertices, %d event(s), %s: %s",
        len(result), result.n_events, status, format_polygon(result.vertices),
    )


class LoggingObserver(SweepObserver):
    """Observer that logs each sweep step."""

    def __init__(self, level: int = logging.DEBUG, log: Optional[logging.Logger] = None):
        self.level = level
        self.log = log if log is not None else logger

    def on_sweep_start(self, origin: Point, n_events: int) -> None:
        self.log.log(self.level, "sweep start at %s with %d event(s)", format_point(origin), n_events)

    def on_endpoint(self, index: int, event: SweepEvent, state: SweepState) -> None:
        self.log.log(
            self.level,
            "event %d %s at %s: %s",
            index, format_point(event.representative.point), format_angle(event.angle), state.value,
        )

    def on_vertex(self, point: Point, state: SweepState) -> None:
        self.log.log(self.level, "  vertex %s [%s]", format_point(point), state.value)

    def on_padding(self, points: Sequence[Point]) -> None:
        self.log.log(self.level, "  padding %d point(s)", len(points))

    def on_sweep_end(self, n_vertices: int, complete: bool) -> None:
        self.log.log(self.level, "sweep end: %d vertices, complete=%s", n_vertices, complete)
