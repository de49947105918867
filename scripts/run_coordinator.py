"""Run the fleet coordinator against live robots.

Listens for pose telemetry over UDP, keeps the fleet state current, and
optionally issues one move command once the commanded robot has reported its
pose.

Usage:
    python scripts/run_coordinator.py --fleet-config data/fleet.json
    python scripts/run_coordinator.py --move 10 1000 1000
"""
from __future__ import annotations

import argparse
import logging
import sys
import time
from dataclasses import replace
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = PROJECT_ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from comms.commands import stop_command
from comms.transport import TelemetryListener, UdpCommandLink
from config import DEFAULT_ROBOT_DEFAULTS, DEFAULT_TELEMETRY, load_fleet_config
from coordinator import Coordinator, FleetState
from runtime import ThreadedScheduler

logger = logging.getLogger("run_coordinator")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument(
        "--fleet-config",
        type=Path,
        default=PROJECT_ROOT / "data" / "fleet.json",
        help="JSON file mapping robot ids to addresses and hardware parameters.",
    )
    parser.add_argument(
        "--listen-port",
        type=int,
        default=DEFAULT_TELEMETRY.listen_port,
        help="UDP port on which pose telemetry arrives.",
    )
    parser.add_argument(
        "--command-port",
        type=int,
        default=DEFAULT_ROBOT_DEFAULTS.command_port,
        help="UDP port the robots accept drive/turn commands on.",
    )
    parser.add_argument(
        "--move",
        nargs=3,
        metavar=("ROBOT_ID", "X", "Y"),
        help="Issue one move command once the robot has been seen.",
    )
    parser.add_argument(
        "--wait-timeout",
        type=float,
        default=30.0,
        help="Seconds to wait for the commanded robot's first telemetry.",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser.parse_args()


def wait_for_robot(fleet: FleetState, robot_id: int, timeout_s: float) -> bool:
    deadline = time.monotonic() + timeout_s
    while time.monotonic() < deadline:
        if robot_id in fleet:
            return True
        time.sleep(0.1)
    return False


def main() -> int:
    args = parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    fleet_config = load_fleet_config(args.fleet_config)
    scheduler = ThreadedScheduler()
    fleet = FleetState(scheduler.now_ms, fleet_config=fleet_config)
    link = UdpCommandLink(port=args.command_port)
    coordinator = Coordinator(fleet, link, scheduler)

    listener = TelemetryListener(
        coordinator.handle_telemetry,
        settings=replace(DEFAULT_TELEMETRY, listen_port=args.listen_port),
    )
    listener.start()

    try:
        if args.move:
            robot_id, target_x, target_y = int(args.move[0]), float(args.move[1]), float(args.move[2])
            if not wait_for_robot(fleet, robot_id, args.wait_timeout):
                logger.error("Robot %s never reported its pose; giving up", robot_id)
                return 1
            outcome = coordinator.plan_and_execute(robot_id, target_x, target_y)
            logger.info("First planning attempt finished in state %s", outcome.state.value)

        while True:
            time.sleep(1.0)
    except KeyboardInterrupt:
        logger.info("Shutting down")
    finally:
        listener.stop()
        scheduler.cancel_all()
        # Pending stop commands were just cancelled; stop everyone explicitly.
        for robot_id in fleet.robot_ids:
            link.send(fleet.get(robot_id).address, stop_command())
        link.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
