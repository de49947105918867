"""Robot-id to address/hardware mapping supplied by the surrounding process."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Optional

from config.defaults import DEFAULT_MOTION, DEFAULT_ROBOT_DEFAULTS, RobotDefaults


@dataclass(frozen=True)
class RobotConfig:
    """Static per-robot settings; ``address`` is ``None`` for unconfigured ids."""

    robot_id: int
    address: Optional[str] = None
    radius: float = DEFAULT_ROBOT_DEFAULTS.radius_cm
    max_speed: float = DEFAULT_ROBOT_DEFAULTS.max_speed

    def __post_init__(self) -> None:
        if self.radius <= 0:
            raise ValueError(f"Robot {self.robot_id}: radius must be positive, got {self.radius}")
        # drive speed is max_speed minus the margin and must stay positive
        if self.max_speed <= DEFAULT_MOTION.speed_margin:
            raise ValueError(
                f"Robot {self.robot_id}: max_speed must exceed the speed margin "
                f"{DEFAULT_MOTION.speed_margin}, got {self.max_speed}"
            )


@dataclass
class FleetConfig:
    """Lookup table of :class:`RobotConfig` keyed by robot id."""

    robots: Dict[int, RobotConfig] = field(default_factory=dict)
    defaults: RobotDefaults = DEFAULT_ROBOT_DEFAULTS

    def for_robot(self, robot_id: int) -> RobotConfig:
        """Return the configured entry, or defaults without an address."""

        config = self.robots.get(robot_id)
        if config is not None:
            return config
        return RobotConfig(
            robot_id=robot_id,
            radius=self.defaults.radius_cm,
            max_speed=self.defaults.max_speed,
        )

    def add(self, config: RobotConfig) -> None:
        self.robots[config.robot_id] = config

    @classmethod
    def from_entries(cls, entries: Iterable[RobotConfig]) -> "FleetConfig":
        fleet = cls()
        for entry in entries:
            fleet.add(entry)
        return fleet


def fleet_config_from_dict(data: Dict) -> FleetConfig:
    defaults = DEFAULT_ROBOT_DEFAULTS
    entries = []
    for item in data.get("robots", []):
        entries.append(
            RobotConfig(
                robot_id=int(item["id"]),
                address=item.get("address"),
                radius=float(item.get("radius", defaults.radius_cm)),
                max_speed=float(item.get("max_speed", defaults.max_speed)),
            )
        )
    return FleetConfig.from_entries(entries)


def fleet_config_to_dict(fleet: FleetConfig) -> Dict:
    robots = []
    for robot_id in sorted(fleet.robots):
        data = asdict(fleet.robots[robot_id])
        data["id"] = data.pop("robot_id")
        robots.append(data)
    return {"robots": robots}


def load_fleet_config(path: str | Path) -> FleetConfig:
    content = json.loads(Path(path).read_text(encoding="utf-8"))
    return fleet_config_from_dict(content)


def save_fleet_config(path: str | Path, fleet: FleetConfig) -> None:
    Path(path).write_text(
        json.dumps(fleet_config_to_dict(fleet), ensure_ascii=True, indent=2),
        encoding="utf-8",
    )
