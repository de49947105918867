"""Space-time geometry kernel: vectors, rays, cylinders, intersections."""

from geometry.vector import Vector3D
from geometry.primitives import Cylinder, Ray
from geometry.intersection import (
    circle_tangents,
    collides,
    collides_at,
    intersection_parameters,
    nearest_intersection,
)

__all__ = [
    "Vector3D",
    "Ray",
    "Cylinder",
    "collides",
    "collides_at",
    "intersection_parameters",
    "nearest_intersection",
    "circle_tangents",
]
