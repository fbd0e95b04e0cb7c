"""
Tests for debug logging helpers.
"""

import logging
import math

import numpy as np
import pytest

from view_polygon import compute_visibility_polygon
from view_polygon.angles import AngleWindow
from view_polygon.debug import (
    PACKAGE_LOGGER,
    LoggingObserver,
    disable_debug_logging,
    format_angle,
    format_point,
    format_polygon,
    log_events,
    log_result,
    setup_debug_logging,
)
from view_polygon.endpoints import EndpointIndex
from view_polygon.geometry import Point
from view_polygon.occluders import Occluder


SINGLE_WALL = np.array([[[10.0, -5.0], [10.0, 5.0]]])


@pytest.fixture
def debug_logging():
    setup_debug_logging()
    yield logging.getLogger(PACKAGE_LOGGER)
    disable_debug_logging()


# =============================================================================
# Formatting
# =============================================================================

class TestFormatting:
    """Tests for format_point / format_angle / format_polygon."""

    def test_format_point(self):
        assert format_point(Point(1.0, -2.5)) == "(1.00, -2.50)"
        assert format_point((1.23456, 0.0), precision=3) == "(1.235, 0.000)"

    def test_format_angle(self):
        assert format_angle(math.pi / 4) == "45.00° (0.785 rad)"

    def test_format_empty_polygon(self):
        assert format_polygon(np.zeros((0, 2))) == "[]"

    def test_format_short_polygon(self):
        assert format_polygon([(0, 0), (1, 0), (0, 1)], precision=0) == "[(0, 0), (1, 0), (0, 1)]"

    def test_format_long_polygon_elided(self):
        vertices = np.arange(40, dtype=np.float64).reshape(20, 2)
        text = format_polygon(vertices, precision=0, max_vertices=4)
        assert text.startswith("[(0, 1), (2, 3), ... 16 more ...")
        assert text.endswith("(36, 37), (38, 39)]")


# =============================================================================
# Logging setup
# =============================================================================

class TestLoggingSetup:
    """Tests for setup_debug_logging / disable_debug_logging."""

    def test_single_handler(self):
        package_logger = logging.getLogger(PACKAGE_LOGGER)
        before = len(package_logger.handlers)
        try:
            setup_debug_logging()
            setup_debug_logging(logging.INFO)
            assert len(package_logger.handlers) == before + 1
            assert package_logger.level == logging.INFO
        finally:
            disable_debug_logging()
        assert len(package_logger.handlers) == before
        assert package_logger.level == logging.NOTSET

    def test_sweep_logs_at_debug(self, debug_logging, caplog):
        with caplog.at_level(logging.DEBUG, logger=PACKAGE_LOGGER):
            compute_visibility_polygon([0.0, 0.0], SINGLE_WALL)
        assert "Sweep finished" in caplog.text
        assert "Endpoint index" in caplog.text


# =============================================================================
# Log helpers and observer
# =============================================================================

class TestLogHelpers:
    """Tests for log_events / log_result / LoggingObserver."""

    def test_log_events(self, caplog):
        walls = [Occluder.wall((10, -5), (10, 5), id=0)]
        events = EndpointIndex.build(Point(0, 0), walls, AngleWindow.unlimited()).events()
        with caplog.at_level(logging.DEBUG, logger=PACKAGE_LOGGER):
            log_events(events)
        assert "event 0 at -26.57°" in caplog.text
        assert "event 1 at 26.57°" in caplog.text

    def test_log_result(self, caplog):
        result = compute_visibility_polygon([0.0, 0.0], SINGLE_WALL)
        with caplog.at_level(logging.INFO, logger=PACKAGE_LOGGER):
            log_result(result, level=logging.INFO)
        assert "8 vertices" in caplog.text
        assert "complete" in caplog.text

    def test_logging_observer(self, caplog):
        with caplog.at_level(logging.DEBUG, logger=PACKAGE_LOGGER):
            compute_visibility_polygon([0.0, 0.0], SINGLE_WALL, observer=LoggingObserver())
        assert "sweep start at (0.00, 0.00) with 6 event(s)" in caplog.text
        assert "in_front" in caplog.text
        assert "vertex (10.00, -5.00)" in caplog.text
        assert "sweep end: 8 vertices, complete=True" in caplog.text

    def test_logging_observer_custom_logger(self, caplog):
        custom = logging.getLogger("viewer.custom")
        with caplog.at_level(logging.INFO, logger="viewer.custom"):
            compute_visibility_polygon(
                [0.0, 0.0], [], radius=5.0, observer=LoggingObserver(level=logging.INFO, log=custom)
            )
        assert "padding 24 point(s)" in caplog.text
