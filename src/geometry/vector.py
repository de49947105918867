"""Three-component vector used for the space-time model.

``x`` and ``y`` are plane coordinates, ``z`` is the time axis.  Instances are
immutable; every operation returns a new vector.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from core.errors import DegenerateVector


@dataclass(frozen=True)
class Vector3D:
    x: float
    y: float
    z: float

    @property
    def magnitude(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)

    def add(self, other: "Vector3D") -> "Vector3D":
        return Vector3D(self.x + other.x, self.y + other.y, self.z + other.z)

    def minus(self, other: "Vector3D") -> "Vector3D":
        return Vector3D(self.x - other.x, self.y - other.y, self.z - other.z)

    def scaled(self, s: float) -> "Vector3D":
        return Vector3D(self.x * s, self.y * s, self.z * s)

    def dot(self, other: "Vector3D") -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    @property
    def normalized(self) -> "Vector3D":
        """Unit-length vector in the same direction.

        Raises:
            DegenerateVector: if the magnitude is exactly zero.
        """
        length = self.magnitude
        if length == 0:
            raise DegenerateVector(f"Cannot normalize vector with zero magnitude: {self}")
        return self.scaled(1.0 / length)

    def distance(self, other: "Vector3D") -> float:
        return math.sqrt(
            (other.x - self.x) ** 2
            + (other.y - self.y) ** 2
            + (other.z - self.z) ** 2
        )

    # Operator sugar for the arithmetic above.
    def __add__(self, other: "Vector3D") -> "Vector3D":
        return self.add(other)

    def __sub__(self, other: "Vector3D") -> "Vector3D":
        return self.minus(other)

    def __mul__(self, s: float) -> "Vector3D":
        return self.scaled(s)

    __rmul__ = __mul__


def magnitude(v: Vector3D) -> float:
    return v.magnitude


def add(a: Vector3D, b: Vector3D) -> Vector3D:
    return a.add(b)


def minus(a: Vector3D, b: Vector3D) -> Vector3D:
    return a.minus(b)


def scaled(v: Vector3D, s: float) -> Vector3D:
    return v.scaled(s)


def dot(a: Vector3D, b: Vector3D) -> float:
    return a.dot(b)


def normalized(v: Vector3D) -> Vector3D:
    return v.normalized


def distance(a: Vector3D, b: Vector3D) -> float:
    return a.distance(b)


__all__ = [
    "Vector3D",
    "magnitude",
    "add",
    "minus",
    "scaled",
    "dot",
    "normalized",
    "distance",
]
