"""Fleet configuration loading and defaults."""

import json
from pathlib import Path

import pytest

from config import (
    DEFAULT_MOTION,
    FleetConfig,
    RobotConfig,
    fleet_config_from_dict,
    load_fleet_config,
    save_fleet_config,
)

PROJECT_ROOT = Path(__file__).resolve().parents[2]


def test_shipped_example_config_loads():
    fleet = load_fleet_config(PROJECT_ROOT / "data" / "fleet.json")

    robot = fleet.for_robot(10)
    assert robot.address == "192.168.1.140"
    assert robot.radius == 10.0
    assert robot.max_speed == 65.0


def test_missing_fields_fall_back_to_defaults():
    fleet = fleet_config_from_dict({"robots": [{"id": 4, "address": "10.0.0.4"}]})

    robot = fleet.for_robot(4)
    assert robot.radius == 10.0
    assert robot.max_speed == 65.0


def test_unknown_robot_gets_defaults_without_address():
    robot = FleetConfig().for_robot(77)

    assert robot.robot_id == 77
    assert robot.address is None


def test_save_then_load(tmp_path):
    fleet = FleetConfig.from_entries(
        [
            RobotConfig(robot_id=2, address="10.0.0.2", radius=7.5, max_speed=60.0),
            RobotConfig(robot_id=1, address="10.0.0.1"),
        ]
    )
    path = tmp_path / "fleet.json"

    save_fleet_config(path, fleet)

    content = json.loads(path.read_text(encoding="utf-8"))
    assert [entry["id"] for entry in content["robots"]] == [1, 2]
    assert load_fleet_config(path).robots == fleet.robots


@pytest.mark.parametrize(
    "field,value",
    [("radius", 0.0), ("max_speed", -1.0), ("max_speed", 10.0), ("max_speed", DEFAULT_MOTION.speed_margin)],
)
def test_invalid_hardware_parameters_rejected(field, value):
    with pytest.raises(ValueError):
        RobotConfig(robot_id=1, **{field: value})


def test_loading_rejects_max_speed_without_drive_headroom():
    with pytest.raises(ValueError, match="speed margin"):
        fleet_config_from_dict({"robots": [{"id": 3, "address": "10.0.0.3", "max_speed": 12}]})


def test_travel_time_conversion():
    assert DEFAULT_MOTION.drive_speed(65.0) == 50.0
    # 3.25 mm per tick: 30.5 cm at 50 ticks/s takes 30.5 / 0.325 / 50 seconds
    assert DEFAULT_MOTION.travel_time_ms(30.5, 50.0) == pytest.approx(30.5 / 0.325 / 50.0 * 1000.0)
    with pytest.raises(ValueError):
        DEFAULT_MOTION.travel_time_ms(10.0, 0.0)
