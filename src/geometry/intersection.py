"""Ray/cylinder intersection and tangent construction.

These are the collision oracle and the waypoint generator of the coordinator.
The intersection test solves for the parameter ``t`` along the ray at which
the squared distance to the cylinder axis equals ``r²``::

    dot1   = ray.d · cyl.d
    deltap = ray.p - cyl.p
    dot2   = deltap · cyl.d
    A      = ray.d - cyl.d * dot1          a = A · A
    C      = deltap - cyl.d * dot2         b = 2 A · C
                                           c = C · C - r²

A real root exists iff ``b² - 4ac >= 0``.  With ``clamp=False`` (the default)
that is the whole test, the ray is treated as an infinite line and the
cylinder's axial extent is ignored.  With ``clamp=True`` the entry/exit
interval is additionally cut to the forward, finite part of the ray and to the
axial extent ``[0, h]`` of the cylinder.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional, Tuple

from core.errors import DegenerateGeometry
from geometry.primitives import Cylinder, Ray
from geometry.vector import Vector3D

logger = logging.getLogger(__name__)

# Below this value of ``a`` the ray is treated as parallel to the cylinder axis.
PARALLEL_EPSILON = 1e-12


@dataclass(frozen=True)
class QuadraticTerms:
    """Coefficients of the closest-approach quadratic plus the axial terms."""

    a: float
    b: float
    c: float
    dot1: float
    dot2: float

    @property
    def discriminant(self) -> float:
        return self.b * self.b - 4.0 * self.a * self.c

    @property
    def is_parallel(self) -> bool:
        return self.a < PARALLEL_EPSILON


def quadratic_terms(ray: Ray, cylinder: Cylinder) -> QuadraticTerms:
    axis = cylinder.direction
    dot1 = ray.direction.dot(axis)
    deltap = ray.origin.minus(cylinder.origin)
    dot2 = deltap.dot(axis)

    a_vec = ray.direction.minus(axis.scaled(dot1))
    c_vec = deltap.minus(axis.scaled(dot2))
    return QuadraticTerms(
        a=a_vec.dot(a_vec),
        b=2.0 * a_vec.dot(c_vec),
        c=c_vec.dot(c_vec) - cylinder.radius * cylinder.radius,
        dot1=dot1,
        dot2=dot2,
    )


def _clip_interval(
    lo: float,
    hi: float,
    ray: Ray,
    cylinder: Cylinder,
    terms: QuadraticTerms,
) -> Optional[Tuple[float, float]]:
    """Cut ``[lo, hi]`` to the finite ray and the cylinder's axial extent."""

    lo = max(lo, 0.0)
    hi = min(hi, ray.length)

    # Axial coordinate of ray point t on the cylinder axis: s(t) = dot2 + dot1 * t
    if terms.dot1 == 0:
        if not 0.0 <= terms.dot2 <= cylinder.extent:
            return None
    else:
        t_start = (0.0 - terms.dot2) / terms.dot1
        t_end = (cylinder.extent - terms.dot2) / terms.dot1
        lo = max(lo, min(t_start, t_end))
        hi = min(hi, max(t_start, t_end))

    if lo > hi:
        return None
    return lo, hi


def intersection_parameters(
    ray: Ray,
    cylinder: Cylinder,
    *,
    clamp: bool = False,
) -> Optional[Tuple[float, float]]:
    """Return ``(t1, t2)`` along the ray, ``t1 >= t2``, or ``None`` if disjoint."""

    terms = quadratic_terms(ray, cylinder)

    if terms.is_parallel:
        # Constant distance to the axis: either inside the tube everywhere or nowhere.
        if terms.c > 0:
            return None
        if not clamp:
            return 0.0, 0.0
        clipped = _clip_interval(-math.inf, math.inf, ray, cylinder, terms)
        if clipped is None:
            return None
        lo, hi = clipped
        return (hi if math.isfinite(hi) else lo), lo

    disc = terms.discriminant
    if disc < 0:
        return None

    root = math.sqrt(disc)
    t1 = (-terms.b + root) / (2.0 * terms.a)
    t2 = (-terms.b - root) / (2.0 * terms.a)
    if not clamp:
        return t1, t2

    clipped = _clip_interval(t2, t1, ray, cylinder, terms)
    if clipped is None:
        return None
    lo, hi = clipped
    return hi, lo


def collides(ray: Ray, cylinder: Cylinder, *, clamp: bool = False) -> bool:
    """True when the ray meets the cylinder (see module docstring for ``clamp``)."""

    return intersection_parameters(ray, cylinder, clamp=clamp) is not None


def collides_at(
    ray: Ray,
    cylinder: Cylinder,
    *,
    clamp: bool = False,
) -> Optional[Tuple[Vector3D, Vector3D]]:
    """Return the two points on the ray where it crosses the cylinder wall.

    The first point belongs to ``t1 = (-b + √disc) / 2a`` and the second to
    ``t2 = (-b - √disc) / 2a``.  Their z components tell the caller when the
    conflict happens along the leg.
    """
    params = intersection_parameters(ray, cylinder, clamp=clamp)
    if params is None:
        return None
    t1, t2 = params
    return ray.point_at(t1), ray.point_at(t2)


def nearest_intersection(
    ray: Ray,
    cylinder: Cylinder,
    *,
    clamp: bool = False,
) -> Optional[Tuple[Vector3D, float]]:
    """Nearer of the two intersection points and its distance to the ray origin."""

    points = collides_at(ray, cylinder, clamp=clamp)
    if points is None:
        return None
    best = min(points, key=ray.origin.distance)
    return best, ray.origin.distance(best)


def circle_tangents(
    cylinder: Cylinder,
    x: float,
    y: float,
    z: float,
) -> Tuple[Vector3D, Vector3D]:
    """Tangent points on the cylinder's cross-section at time ``z`` seen from ``(x, y)``.

    The cross-section is the circle of ``cylinder.radius`` centred where the
    axis crosses height ``z``.  With ``d`` the distance from the point to that
    centre, ``a = asin(r / d)`` is the half-angle of the tangent cone at the
    external point and ``b`` the bearing of the point seen from the centre, so
    the tangent points sit at angles ``b ∓ (π/2 - a)`` around the centre.

    Raises:
        DegenerateGeometry: if the point lies on or inside the circle, or the
            cylinder axis has no unique point at ``z``.
    """
    center = cylinder.axis_point_at_time(z)
    dx = x - center.x
    dy = y - center.y
    r = cylinder.radius

    d = math.hypot(dx, dy)
    if d <= r:
        raise DegenerateGeometry(
            f"Point ({x:.2f}, {y:.2f}) is within radius {r:.2f} of the obstacle centre "
            f"({center.x:.2f}, {center.y:.2f}); tangents are undefined"
        )

    a = math.asin(r / d)
    b = math.atan2(dy, dx)
    half = math.pi / 2.0 - a

    first = b - half
    second = b + half
    p1 = Vector3D(center.x + r * math.cos(first), center.y + r * math.sin(first), z)
    p2 = Vector3D(center.x + r * math.cos(second), center.y + r * math.sin(second), z)
    logger.debug("Tangents from (%.2f, %.2f) at z=%.1f: %s, %s", x, y, z, p1, p2)
    return p1, p2


__all__ = [
    "PARALLEL_EPSILON",
    "QuadraticTerms",
    "quadratic_terms",
    "intersection_parameters",
    "collides",
    "collides_at",
    "nearest_intersection",
    "circle_tangents",
]
