"""
Robot entity
============
Identity, hardware parameters, pose, and the reservation ledger of one robot.

Design notes:
    - A Robot is created the first time telemetry mentions its id and lives
      for the rest of the process (no fleet-membership expiry).
    - Pose is written by telemetry; the ledger is written by the coordinator.
    - Neither is thread-safe on its own; the fleet state serialises access.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from config import DEFAULT_COORDINATOR, DEFAULT_ROBOT_DEFAULTS
from config.fleet_config import RobotConfig
from core.trajectory import Reservation, ReservationKind, TrajectoryLedger
from geometry.primitives import Cylinder
from geometry.vector import Vector3D


class RobotStatus(Enum):
    """
    Motion state as far as the coordinator knows it.

        IDLE → TURNING → DRIVING → IDLE
    """
    IDLE = "idle"
    TURNING = "turning"
    DRIVING = "driving"


@dataclass
class Robot:
    """A tracked robot.

    Attributes:
        robot_id: id carried in telemetry records.
        address: network address commands are sent to (None if unconfigured).
        radius: physical radius of the robot's footprint (cm).
        max_speed: maximum wheel speed (ticks/s).
        x, y: last known position (cm).
        theta: heading in radians; ``None`` until the first telemetry record.
        last_seen_ms: time of the last telemetry record.
        command_seq: id of the newest move command issued for this robot.
    """

    robot_id: int
    address: Optional[str] = None
    radius: float = DEFAULT_ROBOT_DEFAULTS.radius_cm
    max_speed: float = DEFAULT_ROBOT_DEFAULTS.max_speed
    margin: float = DEFAULT_COORDINATOR.reservation_margin_cm

    x: float = 0.0
    y: float = 0.0
    theta: Optional[float] = None
    last_seen_ms: Optional[float] = None
    status: RobotStatus = RobotStatus.IDLE
    command_seq: int = 0

    ledger: TrajectoryLedger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.ledger = TrajectoryLedger(self.robot_id, self.radius, margin=self.margin)

    @classmethod
    def from_config(
        cls,
        config: RobotConfig,
        *,
        margin: float = DEFAULT_COORDINATOR.reservation_margin_cm,
    ) -> "Robot":
        return cls(
            robot_id=config.robot_id,
            address=config.address,
            radius=config.radius,
            max_speed=config.max_speed,
            margin=margin,
        )

    # ========== pose ==========

    @property
    def has_pose(self) -> bool:
        return self.theta is not None

    @property
    def position(self) -> Vector3D:
        """Current plane position with the time component left at zero."""

        return Vector3D(self.x, self.y, 0.0)

    @property
    def heading_degrees(self) -> float:
        return math.degrees(self.theta) if self.theta is not None else 0.0

    def update_pose(self, x: float, y: float, theta: float, seen_at_ms: float) -> None:
        self.x = x
        self.y = y
        self.theta = theta
        self.last_seen_ms = seen_at_ms

    def settle_at(self, x: float, y: float, theta: float, leg_started_ms: float) -> bool:
        """Dead-reckon to the end of a finished leg.

        Only applied when no telemetry arrived since the leg started; returns
        whether the pose was changed.
        """
        if self.last_seen_ms is not None and self.last_seen_ms >= leg_started_ms:
            return False
        self.x = x
        self.y = y
        self.theta = theta
        return True

    # ========== commands ==========

    def next_command_id(self) -> int:
        self.command_seq += 1
        return self.command_seq

    def is_current_command(self, command_id: int) -> bool:
        return command_id == self.command_seq

    # ========== trajectories ==========

    def stationary_reservation(self, now: float, window_ms: float) -> Reservation:
        """Implicit obstacle at the current position for a robot with no claims.

        The axis runs purely along time; the extent is unbounded so the idle
        robot stays an obstacle for any future leg.
        """
        cylinder = Cylinder.between(
            Vector3D(self.x, self.y, now),
            Vector3D(self.x, self.y, now + window_ms),
            self.ledger.radius,
        )
        return Reservation(
            robot_id=self.robot_id,
            cylinder=cylinder,
            start=now,
            duration=window_ms,
            kind=ReservationKind.STATIONARY,
        )

    def trajectories(self, now: float, window_ms: float) -> List[Reservation]:
        """Active reservations, or the stationary fallback when there are none."""

        active = self.ledger.active(now)
        if active:
            return active
        return [self.stationary_reservation(now, window_ms)]


__all__ = ["Robot", "RobotStatus"]
