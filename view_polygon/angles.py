"""
Angular window of a sweep.
"""

import math
from dataclasses import dataclass
from typing import Iterable, List, TypeVar

from view_polygon.geometry import TWO_PI, normalize_angle

T = TypeVar("T")


@dataclass(frozen=True)
class AngleWindow:
    """
    Angular domain swept from ``a_min`` in increasing angle.

    Every angle is normalized into [a_min, a_min + 2π). For an unlimited
    sweep the window starts due west (-π) and covers the whole turn; for a
    limited one it ends at a_max = a_min + width.

    Attributes:
        a_min: Start angle in radians, in [-π, π)
        width: Angular extent in radians, in (0, 2π]
        is_limited: False for a full 360° sweep
    """
    a_min: float
    width: float
    is_limited: bool

    @classmethod
    def unlimited(cls) -> "AngleWindow":
        return cls(a_min=-math.pi, width=TWO_PI, is_limited=False)

    @classmethod
    def from_degrees(cls, angle: float, rotation: float, limited: bool) -> "AngleWindow":
        """
        Window for a field of view of ``angle`` degrees facing ``rotation``.

        Rotation 0 faces +y; the window is centered on rotation + 90°.
        """
        if not limited:
            return cls.unlimited()
        a_min = normalize_angle(math.radians(rotation + 90.0 - angle / 2.0))
        return cls(a_min=a_min, width=math.radians(angle), is_limited=True)

    @property
    def a_max(self) -> float:
        return self.a_min + self.width

    def offset(self, angle: float) -> float:
        """Angle measured from a_min, in [0, 2π)."""
        rel = math.fmod(angle - self.a_min, TWO_PI)
        if rel < 0:
            rel += TWO_PI
        if rel >= TWO_PI:
            rel -= TWO_PI
        return rel

    def normalize(self, angle: float) -> float:
        """Angle folded into [a_min, a_min + 2π)."""
        return self.a_min + self.offset(angle)

    def contains(self, normalized: float) -> bool:
        """Whether an already-normalized angle lies inside the window."""
        if not self.is_limited:
            return True
        return normalized <= self.a_max

    def trim(self, items: Iterable[T], key=lambda item: item.angle) -> List[T]:
        """Drop items whose normalized angle lies beyond a_max."""
        return [item for item in items if self.contains(key(item))]
