"""Plan-and-execute loop with single-step deflection around conflicts.

Every move command runs through a small state machine::

    PLANNING ──no conflict──▶ COMMIT   (turn, settle, drive, stop)
        │
        └──conflict────────▶ DEFLECT  (commit a leg to a tangent waypoint,
                                        then re-plan towards the original
                                        target once that leg is done)

PLANNING builds the direct leg as a ray in (x, y, time) starting ``settle``
milliseconds from now and lasting the estimated travel time, then tests it
against every other robot's reserved cylinders (idle robots count as
stationary obstacles).  DEFLECT picks the conflict whose nearer crossing is
closest to the robot, constructs the tangent points of that cylinder's cross
section seen from the robot, and drives to the first of them pushed slightly
outside the obstacle.  The follow-up attempt is a fresh state-machine run keyed
by the same command id.  A newer command for the same robot makes it stale:
its reservations are released, its pending retry and drive are dropped, and
its stop is left to the newer command.

The decision and the reservation writes of an attempt happen atomically under
the fleet lock.  Commands are sent outside the lock; the settle delay, the
stop, and the retry are scheduler continuations.
"""

from __future__ import annotations

import logging
import math
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Deque, List, Optional, Tuple

from comms.commands import drive_command, stop_command, turn_command
from comms.telemetry import parse_datagram
from comms.transport import CommandLink
from config import (
    DEFAULT_MOTION,
    DEFAULT_TELEMETRY,
    CoordinatorDefaults,
    MotionDefaults,
    TelemetryDefaults,
)
from coordinator.conflict import Conflict, find_conflicts, nearest_conflict
from coordinator.fleet_state import FleetState
from core.errors import CoordinationError, DegenerateGeometry, DegenerateVector, InvalidTelemetry
from core.robot import Robot, RobotStatus
from core.trajectory import Reservation, ReservationKind
from geometry.intersection import circle_tangents
from geometry.primitives import Cylinder, Ray
from geometry.vector import Vector3D
from runtime.scheduler import Scheduler

logger = logging.getLogger(__name__)


class PlanState(Enum):
    PLANNING = "planning"
    COMMIT = "commit"
    DEFLECT = "deflect"
    NO_MOTION = "no_motion"      # target equals current position
    ABORTED = "aborted"          # geometry failure, nothing reserved
    SUPERSEDED = "superseded"    # a newer command owns the robot


def wrap_degrees(angle: float) -> float:
    """Wrap an angle in degrees into ``(-180, 180]``."""

    wrapped = math.fmod(angle, 360.0)
    if wrapped <= -180.0:
        wrapped += 360.0
    elif wrapped > 180.0:
        wrapped -= 360.0
    return wrapped


def turn_angle(heading_rad: Optional[float], x: float, y: float, target_x: float, target_y: float) -> float:
    """Signed turn in degrees from the current heading to the bearing of the target."""

    bearing = math.degrees(math.atan2(target_y - y, target_x - x))
    heading = math.degrees(heading_rad) if heading_rad is not None else 0.0
    return wrap_degrees(bearing - heading)


@dataclass(frozen=True)
class Leg:
    """One committed straight motion: turn in place, then drive."""

    start: Vector3D
    end: Vector3D
    turn_degrees: float
    bearing: float
    distance: float
    speed: float
    travel_ms: float


@dataclass
class PlanOutcome:
    """Result of one planning attempt.

    Attributes:
        state: terminal state of this attempt.
        leg: the committed leg (COMMIT and DEFLECT only).
        conflicts: every reservation the direct leg met.
        chosen: the conflict deflected around.
        waypoint: intermediate target of a deflection.
        resume_at_ms: when the follow-up attempt is scheduled.
        attempt: 0 for the original command, +1 per deflection.
    """

    robot_id: int
    command_id: int
    target: Tuple[float, float]
    state: PlanState = PlanState.PLANNING
    address: Optional[str] = None
    leg: Optional[Leg] = None
    conflicts: List[Conflict] = field(default_factory=list)
    chosen: Optional[Conflict] = None
    waypoint: Optional[Vector3D] = None
    reservations: List[Reservation] = field(default_factory=list)
    resume_at_ms: Optional[float] = None
    attempt: int = 0
    error: Optional[CoordinationError] = None


class Coordinator:
    """Core entry points: ``update_pose``, ``plan_and_execute``, ``current_trajectories``."""

    def __init__(
        self,
        fleet: FleetState,
        link: CommandLink,
        scheduler: Scheduler,
        *,
        motion: MotionDefaults = DEFAULT_MOTION,
        params: Optional[CoordinatorDefaults] = None,
        telemetry: TelemetryDefaults = DEFAULT_TELEMETRY,
        history_size: int = 256,
    ) -> None:
        self.fleet = fleet
        self.link = link
        self.scheduler = scheduler
        self.motion = motion
        self.params = params or fleet.params
        self.telemetry = telemetry
        self.history: Deque[PlanOutcome] = deque(maxlen=history_size)

    # ========== inbound ==========

    def update_pose(self, robot_id: int, x: float, y: float, theta: float) -> Robot:
        return self.fleet.update_pose(robot_id, x, y, theta)

    def handle_telemetry(self, payload: bytes) -> int:
        """Apply every record of a datagram; malformed datagrams are skipped."""

        try:
            records = parse_datagram(payload, self.telemetry)
        except InvalidTelemetry as exc:
            logger.warning("Discarding telemetry: %s", exc)
            return 0
        for record in records:
            self.update_pose(record.robot_id, record.x, record.y, record.theta)
        return len(records)

    def current_trajectories(self, exclude_id: Optional[int] = None) -> List[Reservation]:
        return self.fleet.current_trajectories(exclude_id)

    # ========== planning ==========

    def plan_and_execute(self, robot_id: int, target_x: float, target_y: float) -> PlanOutcome:
        """Start a new move command; supersedes any earlier command for the robot.

        Raises:
            UnknownRobot: if no telemetry was ever received for ``robot_id``.
        """
        with self.fleet.lock:
            robot = self.fleet.get(robot_id)
            previous = robot.command_seq
            command_id = robot.next_command_id()
            was_moving = robot.status is not RobotStatus.IDLE
            # the superseded command will never drive its remaining legs
            if robot.ledger.release(previous):
                logger.info("Robot %s: released reservations of superseded command %d", robot_id, previous)
            robot.status = RobotStatus.IDLE
        logger.info("Robot %s: command %d to (%.1f, %.1f)", robot_id, command_id, target_x, target_y)
        outcome = self._run_attempt(robot_id, command_id, target_x, target_y, attempt=0)
        if was_moving and outcome.state not in (PlanState.COMMIT, PlanState.DEFLECT):
            # the old leg's stop is skipped once superseded
            self.link.send(outcome.address, stop_command())
        return outcome

    def _resume(self, robot_id: int, command_id: int, target_x: float, target_y: float, attempt: int) -> PlanOutcome:
        with self.fleet.lock:
            robot = self.fleet.get(robot_id)
            if not robot.is_current_command(command_id):
                logger.warning(
                    "Robot %s: dropping retry of command %d, superseded by %d",
                    robot_id,
                    command_id,
                    robot.command_seq,
                )
                outcome = PlanOutcome(
                    robot_id=robot_id,
                    command_id=command_id,
                    target=(target_x, target_y),
                    state=PlanState.SUPERSEDED,
                    attempt=attempt,
                )
                self.history.append(outcome)
                return outcome
        return self._run_attempt(robot_id, command_id, target_x, target_y, attempt=attempt)

    def _run_attempt(
        self,
        robot_id: int,
        command_id: int,
        target_x: float,
        target_y: float,
        *,
        attempt: int,
    ) -> PlanOutcome:
        outcome = PlanOutcome(
            robot_id=robot_id,
            command_id=command_id,
            target=(target_x, target_y),
            attempt=attempt,
        )
        with self.fleet.lock:
            robot = self.fleet.get(robot_id)
            outcome.address = robot.address
            now = self.scheduler.now_ms()
            try:
                self._plan(robot, outcome, now)
            except (DegenerateGeometry, DegenerateVector) as exc:
                logger.error(
                    "Robot %s: planning attempt %d of command %d aborted: %s",
                    robot_id,
                    attempt,
                    command_id,
                    exc,
                )
                outcome.state = PlanState.ABORTED
                outcome.error = exc
                outcome.reservations = []
        self.history.append(outcome)
        self._dispatch(outcome, now)
        return outcome

    def _plan(self, robot: Robot, outcome: PlanOutcome, now: float) -> None:
        target_x, target_y = outcome.target
        distance = math.hypot(target_x - robot.x, target_y - robot.y)
        if distance <= 0:
            logger.info("Robot %s already at (%.1f, %.1f); nothing to do", robot.robot_id, target_x, target_y)
            outcome.state = PlanState.NO_MOTION
            return

        speed = self.motion.drive_speed(robot.max_speed)
        travel_ms = self.motion.travel_time_ms(distance, speed)
        depart = now + self.params.settle_delay_ms
        candidate = Ray.through(
            Vector3D(robot.x, robot.y, depart),
            Vector3D(target_x, target_y, depart + travel_ms),
        )

        others = self.fleet.current_trajectories(exclude_id=robot.robot_id)
        outcome.conflicts = find_conflicts(candidate, others, clamp=self.params.clamp_to_extent)
        if not outcome.conflicts:
            outcome.state = PlanState.COMMIT
            self._commit(robot, outcome, target_x, target_y, now)
            logger.info(
                "Robot %s: direct leg to (%.1f, %.1f) is clear, turning %.1f° then driving %.1f",
                robot.robot_id,
                target_x,
                target_y,
                outcome.leg.turn_degrees,
                outcome.leg.distance,
            )
            return

        outcome.state = PlanState.DEFLECT
        chosen = nearest_conflict(outcome.conflicts)
        outcome.chosen = chosen
        outcome.waypoint = self._deflection_waypoint(robot, chosen)
        self._commit(robot, outcome, outcome.waypoint.x, outcome.waypoint.y, now)
        outcome.resume_at_ms = depart + outcome.leg.travel_ms + self.params.retry_margin_ms
        logger.info(
            "Robot %s: %d conflict(s), deflecting around robot %s via (%.1f, %.1f); re-planning at %.0f",
            robot.robot_id,
            len(outcome.conflicts),
            chosen.robot_id,
            outcome.waypoint.x,
            outcome.waypoint.y,
            outcome.resume_at_ms,
        )

    def _deflection_waypoint(self, robot: Robot, conflict: Conflict) -> Vector3D:
        """First tangent point of the conflicting cross-section, pushed outward by the clearance."""

        cylinder: Cylinder = conflict.reservation.cylinder
        z = conflict.nearest.z
        tangent, _ = circle_tangents(cylinder, robot.x, robot.y, z)
        center = cylinder.axis_point_at_time(z)
        scale = (cylinder.radius + self.params.deflection_clearance_cm) / cylinder.radius
        return Vector3D(
            center.x + (tangent.x - center.x) * scale,
            center.y + (tangent.y - center.y) * scale,
            z,
        )

    def _commit(self, robot: Robot, outcome: PlanOutcome, x: float, y: float, now: float) -> None:
        """Build the leg to ``(x, y)`` and register its holding and travel reservations."""

        distance = math.hypot(x - robot.x, y - robot.y)
        speed = self.motion.drive_speed(robot.max_speed)
        travel_ms = self.motion.travel_time_ms(distance, speed)
        settle = self.params.settle_delay_ms
        depart = now + settle

        leg = Leg(
            start=Vector3D(robot.x, robot.y, depart),
            end=Vector3D(x, y, depart + travel_ms),
            turn_degrees=turn_angle(robot.theta, robot.x, robot.y, x, y),
            bearing=math.atan2(y - robot.y, x - robot.x),
            distance=distance,
            speed=speed,
            travel_ms=travel_ms,
        )

        holding = robot.ledger.add_trajectory(
            robot.x,
            robot.y,
            robot.x,
            robot.y,
            settle,
            now=now,
            kind=ReservationKind.HOLDING,
            command_id=outcome.command_id,
        )
        travel = robot.ledger.add_trajectory(
            robot.x,
            robot.y,
            x,
            y,
            travel_ms,
            now=now,
            start_offset=settle,
            kind=ReservationKind.TRAVEL,
            command_id=outcome.command_id,
        )
        robot.status = RobotStatus.TURNING
        outcome.leg = leg
        outcome.reservations = [holding, travel]

    # ========== execution ==========

    def _dispatch(self, outcome: PlanOutcome, now: float) -> None:
        if outcome.state not in (PlanState.COMMIT, PlanState.DEFLECT):
            return
        leg = outcome.leg
        self.link.send(outcome.address, turn_command(leg.turn_degrees, self.motion))
        self.scheduler.call_later(
            self.params.settle_delay_ms,
            self._start_drive,
            outcome.robot_id,
            outcome.command_id,
            leg,
        )
        if outcome.state is PlanState.DEFLECT:
            target_x, target_y = outcome.target
            self.scheduler.call_later(
                outcome.resume_at_ms - now,
                self._resume,
                outcome.robot_id,
                outcome.command_id,
                target_x,
                target_y,
                outcome.attempt + 1,
            )

    def _start_drive(self, robot_id: int, command_id: int, leg: Leg) -> None:
        with self.fleet.lock:
            robot = self.fleet.get(robot_id)
            if not robot.is_current_command(command_id):
                logger.warning("Robot %s: skipping drive of superseded command %d", robot_id, command_id)
                return
            robot.status = RobotStatus.DRIVING
            address = robot.address
            started = self.scheduler.now_ms()
        self.link.send(address, drive_command(leg.speed))
        self.scheduler.call_later(leg.travel_ms, self._finish_leg, robot_id, command_id, leg, started)

    def _finish_leg(self, robot_id: int, command_id: int, leg: Leg, started_ms: float) -> None:
        with self.fleet.lock:
            robot = self.fleet.get(robot_id)
            if not robot.is_current_command(command_id):
                # pose and motion belong to the newer command now
                logger.warning(
                    "Robot %s: leg of superseded command %d ended, leaving the robot to command %d",
                    robot_id,
                    command_id,
                    robot.command_seq,
                )
                return
            address = robot.address
            if robot.settle_at(leg.end.x, leg.end.y, leg.bearing, started_ms):
                logger.debug("Robot %s: no telemetry during leg, assuming arrival at (%.1f, %.1f)",
                             robot_id, leg.end.x, leg.end.y)
            robot.status = RobotStatus.IDLE
        self.link.send(address, stop_command())


__all__ = ["PlanState", "Leg", "PlanOutcome", "Coordinator", "wrap_degrees", "turn_angle"]
