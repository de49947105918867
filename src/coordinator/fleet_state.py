"""Fleet-wide registry of robots and their reservations.

The registry is the only shared mutable state of the coordinator.  Telemetry
writes poses, planning attempts read every ledger and write their own robot's
ledger; all of it happens under :attr:`FleetState.lock` so an attempt never
observes a half-written reservation set.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, List, Optional

from config import DEFAULT_COORDINATOR, CoordinatorDefaults
from config.fleet_config import FleetConfig
from core.errors import UnknownRobot
from core.robot import Robot
from core.trajectory import Reservation

logger = logging.getLogger(__name__)


class FleetState:
    """Robots keyed by id, created on first telemetry observation."""

    def __init__(
        self,
        clock: Callable[[], float],
        *,
        fleet_config: Optional[FleetConfig] = None,
        params: CoordinatorDefaults = DEFAULT_COORDINATOR,
    ) -> None:
        self.clock = clock
        self.fleet_config = fleet_config or FleetConfig()
        self.params = params
        self.lock = threading.RLock()
        self._robots: Dict[int, Robot] = {}

    def update_pose(self, robot_id: int, x: float, y: float, theta: float) -> Robot:
        with self.lock:
            robot = self._robots.get(robot_id)
            if robot is None:
                robot = Robot.from_config(
                    self.fleet_config.for_robot(robot_id),
                    margin=self.params.reservation_margin_cm,
                )
                self._robots[robot_id] = robot
                logger.info("Tracking new robot %s at (%.1f, %.1f)", robot_id, x, y)
            robot.update_pose(x, y, theta, self.clock())
            return robot

    def get(self, robot_id: int) -> Robot:
        with self.lock:
            robot = self._robots.get(robot_id)
            if robot is None:
                raise UnknownRobot(robot_id)
            return robot

    def current_trajectories(self, exclude_id: Optional[int] = None) -> List[Reservation]:
        """Every other robot's active reservations, idle robots as stationary obstacles.

        Ledgers are pruned and re-read on every call; nothing is cached.
        """
        with self.lock:
            now = self.clock()
            trajectories: List[Reservation] = []
            for robot_id in sorted(self._robots):
                if robot_id == exclude_id:
                    continue
                robot = self._robots[robot_id]
                trajectories.extend(robot.trajectories(now, self.params.stationary_window_ms))
            return trajectories

    def prune_expired(self) -> int:
        with self.lock:
            now = self.clock()
            return sum(robot.ledger.prune_expired(now) for robot in self._robots.values())

    @property
    def robot_ids(self) -> List[int]:
        with self.lock:
            return sorted(self._robots)

    def __contains__(self, robot_id: object) -> bool:
        with self.lock:
            return robot_id in self._robots

    def __len__(self) -> int:
        with self.lock:
            return len(self._robots)


__all__ = ["FleetState"]
