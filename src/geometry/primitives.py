"""Ray and cylinder primitives of the space-time model.

A :class:`Ray` doubles as "a straight leg from A to B over a time interval":
the z components of its two construction points are the start and end
instants.  A :class:`Cylinder` embeds a ray as its axis and adds a radius and an
axial extent; it stands for the tube a disk-shaped robot sweeps while moving.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from core.errors import DegenerateGeometry
from geometry.vector import Vector3D


@dataclass(frozen=True)
class Ray:
    """Origin plus unit direction.

    ``length`` is the distance between the two construction points; it only
    matters to extent-aware intersection tests and is ``inf`` for free rays.
    """

    origin: Vector3D
    direction: Vector3D
    length: float = math.inf

    @classmethod
    def through(cls, p1: Vector3D, p2: Vector3D) -> "Ray":
        """Build the ray from ``p1`` towards ``p2``.

        Raises:
            DegenerateVector: if ``p1 == p2``.
        """
        offset = p2.minus(p1)
        return cls(origin=p1, direction=offset.normalized, length=offset.magnitude)

    @classmethod
    def from_coordinates(
        cls, x1: float, y1: float, z1: float, x2: float, y2: float, z2: float
    ) -> "Ray":
        return cls.through(Vector3D(x1, y1, z1), Vector3D(x2, y2, z2))

    def point_at(self, t: float) -> Vector3D:
        return self.origin.add(self.direction.scaled(t))

    @property
    def end(self) -> Vector3D:
        if math.isinf(self.length):
            raise DegenerateGeometry("Unbounded ray has no end point")
        return self.point_at(self.length)


@dataclass(frozen=True)
class Cylinder:
    """Tube of ``radius`` around ``axis``, ``extent`` long along the axis."""

    axis: Ray
    radius: float
    extent: float = math.inf

    def __post_init__(self) -> None:
        if not self.radius > 0:
            raise ValueError(f"Cylinder radius must be strictly positive, got {self.radius}")
        if self.extent < 0:
            raise ValueError(f"Cylinder extent must be non-negative, got {self.extent}")

    @classmethod
    def between(
        cls,
        p1: Vector3D,
        p2: Vector3D,
        radius: float,
        extent: float = math.inf,
    ) -> "Cylinder":
        return cls(axis=Ray.through(p1, p2), radius=radius, extent=extent)

    @classmethod
    def from_coordinates(
        cls,
        x1: float,
        y1: float,
        z1: float,
        x2: float,
        y2: float,
        z2: float,
        r: float,
        h: float = math.inf,
    ) -> "Cylinder":
        return cls.between(Vector3D(x1, y1, z1), Vector3D(x2, y2, z2), r, h)

    @property
    def origin(self) -> Vector3D:
        return self.axis.origin

    @property
    def direction(self) -> Vector3D:
        return self.axis.direction

    def axis_point_at_time(self, z: float) -> Vector3D:
        """Point where the axis crosses height ``z`` on the time axis.

        Raises:
            DegenerateGeometry: if the axis never changes in time.
        """
        if self.direction.z == 0:
            raise DegenerateGeometry("Cylinder axis is parallel to the plane; no unique point at time z")
        s = (z - self.origin.z) / self.direction.z
        return self.axis.point_at(s)


__all__ = ["Ray", "Cylinder"]
