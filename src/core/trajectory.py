"""Per-robot trajectory reservations with lazy expiry.

A reservation is a cylinder in (x, y, time) owned by exactly one robot: "this
robot claims this space-time tube".  Reservations are appended when a robot
commits to a leg and dropped once ``start + duration < now``.  Expiry is lazy:
every read goes through :meth:`TrajectoryLedger.prune_expired` first.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Optional

from config import DEFAULT_COORDINATOR
from geometry.primitives import Cylinder
from geometry.vector import Vector3D

logger = logging.getLogger(__name__)


class ReservationKind(Enum):
    """Why a cylinder was claimed."""

    HOLDING = "holding"        # turning in place before a leg
    TRAVEL = "travel"          # straight leg between two points
    STATIONARY = "stationary"  # synthesized for idle robots, never stored


@dataclass(frozen=True)
class Reservation:
    robot_id: int
    cylinder: Cylinder
    start: float
    duration: float
    kind: ReservationKind = ReservationKind.TRAVEL
    command_id: Optional[int] = None

    @property
    def end(self) -> float:
        return self.start + self.duration

    def is_expired(self, now: float) -> bool:
        return self.start + self.duration < now


def reservation_radius(robot_radius: float, margin: float) -> float:
    """Radius of a claimed tube: twice the robot radius plus a safety margin."""

    return 2.0 * robot_radius + margin


class TrajectoryLedger:
    """Active reservations of one robot."""

    def __init__(
        self,
        robot_id: int,
        robot_radius: float,
        *,
        margin: float = DEFAULT_COORDINATOR.reservation_margin_cm,
    ) -> None:
        self.robot_id = robot_id
        self.radius = reservation_radius(robot_radius, margin)
        if self.radius <= 0:
            raise ValueError(f"Reservation radius must be positive, got {self.radius}")
        self._reservations: List[Reservation] = []

    def add_trajectory(
        self,
        x1: float,
        y1: float,
        x2: float,
        y2: float,
        duration: float,
        *,
        now: float,
        start_offset: float = 0.0,
        kind: ReservationKind = ReservationKind.TRAVEL,
        command_id: Optional[int] = None,
    ) -> Reservation:
        """Claim the tube from ``(x1, y1, now + offset)`` to ``(x2, y2, now + offset + duration)``."""

        if duration <= 0:
            raise ValueError(f"Reservation duration must be positive, got {duration}")

        start = now + start_offset
        p1 = Vector3D(x1, y1, start)
        p2 = Vector3D(x2, y2, start + duration)
        cylinder = Cylinder.between(p1, p2, self.radius, extent=p1.distance(p2))
        reservation = Reservation(
            robot_id=self.robot_id,
            cylinder=cylinder,
            start=start,
            duration=duration,
            kind=kind,
            command_id=command_id,
        )
        self._reservations.append(reservation)
        logger.debug(
            "Robot %s reserved %s (%.1f, %.1f) -> (%.1f, %.1f) over [%.0f, %.0f]",
            self.robot_id,
            kind.value,
            x1,
            y1,
            x2,
            y2,
            start,
            reservation.end,
        )
        return reservation

    def prune_expired(self, now: float) -> int:
        """Drop every reservation whose time extent lies fully in the past."""

        before = len(self._reservations)
        self._reservations[:] = [res for res in self._reservations if not res.is_expired(now)]
        removed = before - len(self._reservations)
        if removed:
            logger.debug("Robot %s: pruned %d expired reservation(s)", self.robot_id, removed)
        return removed

    def release(self, command_id: int) -> int:
        """Drop the reservations claimed by ``command_id``; returns how many went."""

        before = len(self._reservations)
        self._reservations[:] = [res for res in self._reservations if res.command_id != command_id]
        removed = before - len(self._reservations)
        if removed:
            logger.debug("Robot %s: released %d reservation(s) of command %d", self.robot_id, removed, command_id)
        return removed

    def active(self, now: float) -> List[Reservation]:
        self.prune_expired(now)
        return list(self._reservations)

    def clear(self) -> None:
        self._reservations.clear()

    def __len__(self) -> int:
        return len(self._reservations)

    def __iter__(self) -> Iterator[Reservation]:
        return iter(list(self._reservations))


__all__ = ["ReservationKind", "Reservation", "TrajectoryLedger", "reservation_radius"]
