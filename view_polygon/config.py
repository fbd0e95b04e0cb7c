"""
Sweep configuration.

``SweepConfig`` bundles the field-of-view constraints and tuning knobs for a
single sweep. It is immutable and validated on construction.
"""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass, replace
from typing import Any, Literal

# Angles this close to a full turn are treated as unlimited
FULL_CIRCLE_EPSILON = 1e-6

DEFAULT_DENSITY = 12
MAX_DENSITY = 720

PADDING_METHODS = ("angle", "bezier")


class ValidationError(ValueError):
    """Raised when input validation fails."""

    pass


@dataclass(frozen=True)
class SweepConfig:
    """Immutable settings for one visibility sweep.

    Attributes:
        channel: Blocking channel evaluated against each occluder's
            blocking mapping (e.g. "sight", "light", "sound").
        angle: Field of view in degrees, in (0, 360]. 360 means unlimited.
        rotation: Facing in degrees. The window spans
            rotation + 90 - angle/2 .. rotation + 90 + angle/2, so 0 faces +y.
        radius: Limiting radius, or None / 0 for unlimited.
        density: Arc padding points per half turn.
        padding: "angle" for exact points on the circle, "bezier" for the
            cubic quadrant approximation.
        bounds: Optional world rectangle (x_min, y_min, x_max, y_max). Its
            edges are added as boundary occluders for unlimited-radius sweeps.
        max_iterations: Optional cap on sweep steps, counting each event
            and each insertion into or removal from the occluder list.
            Defaults to twice the number of events plus twice the number
            of occluders, plus a small constant.

    Raises:
        ValidationError: If any field is out of range or malformed
    """

    channel: str = "sight"
    angle: float = 360.0
    rotation: float = 0.0
    radius: float | None = None
    density: int = DEFAULT_DENSITY
    padding: Literal["angle", "bezier"] = "angle"
    bounds: tuple[float, float, float, float] | None = None
    max_iterations: int | None = None

    def __post_init__(self) -> None:
        normalized_bounds = _validate_sweep_config(self)
        # Use object.__setattr__ because the dataclass is frozen
        object.__setattr__(self, "bounds", normalized_bounds)
        object.__setattr__(self, "angle", float(self.angle))
        object.__setattr__(self, "rotation", float(self.rotation))
        if self.radius is not None:
            object.__setattr__(self, "radius", float(self.radius))

    @property
    def has_radius(self) -> bool:
        """True when the sweep is limited to a circle."""
        return self.radius is not None and self.radius > 0

    @property
    def is_limited(self) -> bool:
        """True when the sweep is limited to an angular window."""
        return self.angle < 360.0 - FULL_CIRCLE_EPSILON

    def with_overrides(self, **overrides: Any) -> SweepConfig:
        """Return a copy with the given fields replaced (and re-validated)."""
        unknown = set(overrides) - set(self.__dataclass_fields__)
        if unknown:
            raise ValidationError(f"unknown config field(s): {', '.join(sorted(unknown))}")
        return replace(self, **overrides)


def _validate_sweep_config(config: SweepConfig) -> tuple[float, float, float, float] | None:
    """Validate a SweepConfig and return normalized bounds.

    Args:
        config: The SweepConfig to validate

    Returns:
        bounds as a tuple of floats, or None if not provided

    Raises:
        ValidationError: If any field is invalid
    """
    if not isinstance(config.channel, str) or not config.channel:
        raise ValidationError(f"channel must be a non-empty string, got {config.channel!r}")

    if not _is_real(config.angle) or not (0.0 < config.angle <= 360.0):
        raise ValidationError(f"angle must be in (0, 360], got {config.angle!r}")

    if not _is_real(config.rotation) or not math.isfinite(config.rotation):
        raise ValidationError(f"rotation must be a finite number, got {config.rotation!r}")

    if config.radius is not None:
        if not _is_real(config.radius) or not math.isfinite(config.radius):
            raise ValidationError(f"radius must be a finite number or None, got {config.radius!r}")
        if config.radius < 0:
            raise ValidationError(f"radius must not be negative, got {config.radius}")

    if isinstance(config.density, bool) or not isinstance(config.density, numbers.Integral):
        raise ValidationError(f"density must be an int, got {type(config.density).__name__}")
    if not (1 <= config.density <= MAX_DENSITY):
        raise ValidationError(f"density must be in [1, {MAX_DENSITY}], got {config.density}")

    if config.padding not in PADDING_METHODS:
        raise ValidationError(
            f"padding must be one of {PADDING_METHODS}, got {config.padding!r}"
        )

    if config.max_iterations is not None:
        if isinstance(config.max_iterations, bool) or not isinstance(config.max_iterations, numbers.Integral):
            raise ValidationError("max_iterations must be an int or None")
        if config.max_iterations < 1:
            raise ValidationError(f"max_iterations must be positive, got {config.max_iterations}")

    if config.bounds is None:
        return None

    try:
        values = tuple(float(v) for v in config.bounds)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"bounds must be four numbers, got {config.bounds!r}") from exc
    if len(values) != 4:
        raise ValidationError(f"bounds must have 4 values (x_min, y_min, x_max, y_max), got {len(values)}")
    if not all(math.isfinite(v) for v in values):
        raise ValidationError(f"bounds must be finite, got {values}")
    x_min, y_min, x_max, y_max = values
    if x_min >= x_max or y_min >= y_max:
        raise ValidationError(f"bounds must satisfy x_min < x_max and y_min < y_max, got {values}")
    return (x_min, y_min, x_max, y_max)


def _is_real(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)
