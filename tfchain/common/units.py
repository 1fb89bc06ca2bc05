"""
Angle values with explicit units.

Text form is ``<value>r`` for radians and ``<value>d`` for degrees. Parsing
also accepts the suffixes ``rad``, ``deg`` and ``°``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from functools import total_ordering


class AngleUnit(str, Enum):
    RADIAN = "rad"
    DEGREE = "deg"


class AngleFormat(str, Enum):
    """Unit requested for output."""
    DEG = "deg"
    RAD = "rad"


# Longest suffixes first: "rad" also ends with "d"
_SUFFIXES = (
    ("°", AngleUnit.DEGREE),
    ("rad", AngleUnit.RADIAN),
    ("deg", AngleUnit.DEGREE),
    ("d", AngleUnit.DEGREE),
    ("r", AngleUnit.RADIAN),
)


@total_ordering
@dataclass(frozen=True, eq=False)
class Angle:
    """A plane angle. Equality and ordering compare the radian value."""
    value: float
    unit: AngleUnit = AngleUnit.RADIAN

    @classmethod
    def from_radians(cls, value: float) -> "Angle":
        return cls(float(value), AngleUnit.RADIAN)

    @classmethod
    def from_degrees(cls, value: float) -> "Angle":
        return cls(float(value), AngleUnit.DEGREE)

    @classmethod
    def zero(cls) -> "Angle":
        return cls(0.0, AngleUnit.RADIAN)

    @classmethod
    def parse(cls, text: str) -> "Angle":
        """
        Parse ``"74.3d"``, ``"-47.2deg"``, ``"97.0r"``, ``"-61.4rad"`` or ``"10°"``.

        Raises:
            ValueError: If the suffix is missing or the number is not finite
        """
        text = text.strip()
        for suffix, unit in _SUFFIXES:
            if text.endswith(suffix):
                number = text[: -len(suffix)]
                try:
                    value = float(number)
                except ValueError:
                    raise ValueError(f"unable to parse angle value '{text}'") from None
                if not math.isfinite(value):
                    raise ValueError(f"invalid angle value '{value}'")
                return cls(value, unit)
        raise ValueError(f"unable to parse angle value '{text}'")

    def as_radians(self) -> float:
        if self.unit is AngleUnit.RADIAN:
            return self.value
        return math.radians(self.value)

    def as_degrees(self) -> float:
        if self.unit is AngleUnit.DEGREE:
            return self.value
        return math.degrees(self.value)

    def to_radians(self) -> "Angle":
        return Angle(self.as_radians(), AngleUnit.RADIAN)

    def to_degrees(self) -> "Angle":
        return Angle(self.as_degrees(), AngleUnit.DEGREE)

    def to_format(self, angle_format: AngleFormat) -> "Angle":
        if angle_format is AngleFormat.DEG:
            return self.to_degrees()
        return self.to_radians()

    def normalize(self) -> "Angle":
        """Wrap into [0, 2π) or [0, 360) keeping the unit."""
        full_turn = 2.0 * math.pi if self.unit is AngleUnit.RADIAN else 360.0
        return Angle(self.value % full_turn, self.unit)

    def isclose(self, other: "Angle", epsilon: float) -> bool:
        return abs(self.as_radians() - other.as_radians()) <= epsilon

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Angle):
            return NotImplemented
        return self.as_radians() == other.as_radians()

    def __lt__(self, other: "Angle") -> bool:
        if not isinstance(other, Angle):
            return NotImplemented
        return self.as_radians() < other.as_radians()

    def __hash__(self) -> int:
        return hash(self.as_radians())

    def __str__(self) -> str:
        suffix = "r" if self.unit is AngleUnit.RADIAN else "d"
        return f"{self.value!r}{suffix}"
