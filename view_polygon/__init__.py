"""
View Polygon
============

Field-of-view polygons from an angular sweep over line-segment occluders,
with optional angle and radius limits and terrain (partial) occlusion.
"""

from view_polygon.api import compute_visibility_polygon, VisibilityResult
from view_polygon.config import SweepConfig, ValidationError
from view_polygon.errors import (
    SweepError,
    SweepInvariantError,
    SweepIterationLimitError,
    PaddingLimitError,
)
from view_polygon.occluders import (
    BlockingType,
    Direction,
    Occluder,
    OccluderKind,
    occluders_from_array,
)
from view_polygon.observer import SweepObserver, SweepState, RecordingObserver
from view_polygon.debug import (
    LoggingObserver,
    log_events,
    log_result,
    format_angle,
    format_point,
    format_polygon,
    setup_debug_logging,
    disable_debug_logging,
)

__version__ = "0.1.0"

__all__ = [
    # Main API
    'compute_visibility_polygon',
    'VisibilityResult',
    'SweepConfig',
    # Occluder model
    'Occluder',
    'BlockingType',
    'Direction',
    'OccluderKind',
    'occluders_from_array',
    # Errors
    'ValidationError',
    'SweepError',
    'SweepInvariantError',
    'SweepIterationLimitError',
    'PaddingLimitError',
    # Observers
    'SweepObserver',
    'SweepState',
    'RecordingObserver',
    'LoggingObserver',
    # Debug utilities
    'log_events',
    'log_result',
    'format_angle',
    'format_point',
    'format_polygon',
    'setup_debug_logging',
    'disable_debug_logging',
]
