"""Central repository for tunable robot, motion, and coordinator defaults.

All frequently adjusted numerical values that influence trajectory
reservations, deflection behaviour, or the wire-level drive conversion are
collected here so they can be updated from a single location without touching
algorithmic code.  The constants are exposed as frozen dataclasses to provide
structure and discoverability while keeping them easily serialisable.

Units used throughout the project:
    * plane coordinates in centimetres (telemetry raw units divided by 10)
    * the time axis in milliseconds since the epoch
    * wheel speeds in encoder ticks per second
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class RobotDefaults:
    """Baseline robot characteristics used when the fleet config is silent."""

    radius_cm: float = 10.0
    max_speed: float = 65.0
    command_port: int = 9750


@dataclass(frozen=True)
class MotionDefaults:
    """Conversion constants between plane distances and wheel commands."""

    cm_per_tick: float = 0.325  # 3.25 mm of travel per encoder tick
    speed_margin: float = 15.0
    turn_ticks_per_revolution: float = 100.0

    def drive_speed(self, max_speed: float) -> float:
        """Return the commanded wheel speed for a robot with ``max_speed``."""

        return max_speed - self.speed_margin

    def travel_time_ms(self, distance: float, speed: float) -> float:
        """Travel time of a straight leg, ``distance / cm_per_tick / speed``."""

        if speed <= 0:
            raise ValueError(f"Drive speed must be positive, got {speed}")
        return distance / self.cm_per_tick / speed * 1000.0


@dataclass(frozen=True)
class CoordinatorDefaults:
    """Knobs steering reservations and the deflection loop."""

    reservation_margin_cm: float = 5.0
    settle_delay_ms: float = 2000.0
    retry_margin_ms: float = 500.0
    deflection_clearance_cm: float = 5.0
    stationary_window_ms: float = 1.0
    clamp_to_extent: bool = True


@dataclass(frozen=True)
class TelemetryDefaults:
    """Layout and socket settings of the inbound pose stream."""

    record_size: int = 20
    position_scale: float = 10.0
    listen_host: str = "0.0.0.0"
    listen_port: int = 9751
    buffer_size: int = 4096


@dataclass(frozen=True)
class CoordinationParameters:
    """Bundle of defaults covering robot, motion, coordinator, and telemetry settings."""

    robot: RobotDefaults = field(default_factory=RobotDefaults)
    motion: MotionDefaults = field(default_factory=MotionDefaults)
    coordinator: CoordinatorDefaults = field(default_factory=CoordinatorDefaults)
    telemetry: TelemetryDefaults = field(default_factory=TelemetryDefaults)


DEFAULT_ROBOT_DEFAULTS = RobotDefaults()
DEFAULT_MOTION = MotionDefaults()
DEFAULT_COORDINATOR = CoordinatorDefaults()
DEFAULT_TELEMETRY = TelemetryDefaults()
DEFAULT_COORDINATION_PARAMETERS = CoordinationParameters()
