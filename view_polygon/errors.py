"""
Exceptions raised while sweeping.

Input problems raise ``ValueError`` / ``ValidationError`` up front; the
classes here signal that a sweep in progress could not finish. The API
catches them and returns the partial polygon.
"""

from typing import Hashable, Optional


class SweepError(Exception):
    """Base class for failures inside a running sweep."""


class SweepInvariantError(SweepError):
    """Two occluders in the potential list cross each other."""

    def __init__(self, first_id: Hashable, second_id: Hashable, message: Optional[str] = None):
        self.first_id = first_id
        self.second_id = second_id
        if message is None:
            message = f"occluders {first_id!r} and {second_id!r} cross along the sweep"
        super().__init__(message)


class SweepIterationLimitError(SweepError):
    """The sweep took more steps (events plus list changes) than the configured cap."""

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"sweep exceeded {limit} iterations")


class PaddingLimitError(SweepError):
    """Arc padding asked for more points than allowed."""

    def __init__(self, requested: int, limit: int):
        self.requested = requested
        self.limit = limit
        super().__init__(f"arc padding requested {requested} points (limit {limit})")
