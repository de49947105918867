"""Conflict detection between a candidate leg and reserved space-time tubes."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from core.trajectory import Reservation
from geometry.intersection import collides_at
from geometry.primitives import Ray
from geometry.vector import Vector3D

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Conflict:
    """A reservation hit by the candidate leg.

    ``points`` are the two wall crossings on the leg, ``nearest`` the one
    closer to the leg origin and ``distance`` its distance from that origin.
    """

    reservation: Reservation
    points: Tuple[Vector3D, Vector3D]
    nearest: Vector3D
    distance: float

    @property
    def robot_id(self) -> int:
        return self.reservation.robot_id


def find_conflicts(
    leg: Ray,
    reservations: Iterable[Reservation],
    *,
    clamp: bool = False,
) -> List[Conflict]:
    """Test ``leg`` against every reservation, keeping the ones it meets."""

    conflicts: List[Conflict] = []
    for reservation in reservations:
        points = collides_at(leg, reservation.cylinder, clamp=clamp)
        if points is None:
            continue
        nearest = min(points, key=leg.origin.distance)
        conflict = Conflict(
            reservation=reservation,
            points=points,
            nearest=nearest,
            distance=leg.origin.distance(nearest),
        )
        logger.debug(
            "Leg meets %s reservation of robot %s at (%.1f, %.1f, t=%.0f)",
            reservation.kind.value,
            reservation.robot_id,
            nearest.x,
            nearest.y,
            nearest.z,
        )
        conflicts.append(conflict)
    return conflicts


def nearest_conflict(conflicts: Iterable[Conflict]) -> Optional[Conflict]:
    """Conflict whose nearer crossing is closest to the leg origin (first wins ties)."""

    best: Optional[Conflict] = None
    for conflict in conflicts:
        if best is None or conflict.distance < best.distance:
            best = conflict
    return best


__all__ = ["Conflict", "find_conflicts", "nearest_conflict"]
