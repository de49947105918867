"""Configuration defaults and fleet configuration helpers."""

from config.defaults import (
    DEFAULT_COORDINATION_PARAMETERS,
    DEFAULT_COORDINATOR,
    DEFAULT_MOTION,
    DEFAULT_ROBOT_DEFAULTS,
    DEFAULT_TELEMETRY,
    CoordinationParameters,
    CoordinatorDefaults,
    MotionDefaults,
    RobotDefaults,
    TelemetryDefaults,
)
from config.fleet_config import (
    FleetConfig,
    RobotConfig,
    fleet_config_from_dict,
    fleet_config_to_dict,
    load_fleet_config,
    save_fleet_config,
)

__all__ = [
    "DEFAULT_COORDINATION_PARAMETERS",
    "DEFAULT_COORDINATOR",
    "DEFAULT_MOTION",
    "DEFAULT_ROBOT_DEFAULTS",
    "DEFAULT_TELEMETRY",
    "CoordinationParameters",
    "CoordinatorDefaults",
    "MotionDefaults",
    "RobotDefaults",
    "TelemetryDefaults",
    "FleetConfig",
    "RobotConfig",
    "fleet_config_from_dict",
    "fleet_config_to_dict",
    "load_fleet_config",
    "save_fleet_config",
]
