"""Offline deflection scenario on a simulated clock.

Robot A starts at the origin and is commanded across the plane while robot B
sits idle on the straight line between A and its target.  The coordinator runs
against a virtual-time scheduler and an in-memory command link; the script
prints the command log and renders the legs of A around B's footprint.

Usage:
    python scripts/simulate_deflection.py --figure docs/figures/deflection.png
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List

import matplotlib
matplotlib.use("Agg")  # Non-interactive backend
import matplotlib.pyplot as plt
import numpy as np

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = PROJECT_ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from comms.transport import RecordingLink
from coordinator import Coordinator, FleetState, PlanOutcome, PlanState
from runtime import SimulatedScheduler


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--target", nargs=2, type=float, default=(100.0, 0.0), metavar=("X", "Y"))
    parser.add_argument("--obstacle", nargs=2, type=float, default=(50.0, 0.0), metavar=("X", "Y"))
    parser.add_argument(
        "--figure",
        type=Path,
        default=Path("docs/figures/deflection.png"),
        help="Where to write the x/y plot of the committed legs.",
    )
    parser.add_argument("--max-calls", type=int, default=1_000)
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser.parse_args()


def run_scenario(target, obstacle, max_calls: int):
    scheduler = SimulatedScheduler(start_ms=0.0)
    fleet = FleetState(scheduler.now_ms)
    link = RecordingLink(clock=scheduler.now_ms)
    coordinator = Coordinator(fleet, link, scheduler)

    coordinator.update_pose(1, 0.0, 0.0, 0.0)
    coordinator.update_pose(2, obstacle[0], obstacle[1], 0.0)
    coordinator.plan_and_execute(1, target[0], target[1])
    scheduler.run_until_idle(max_calls=max_calls)
    return coordinator, link


def plot_legs(outcomes: List[PlanOutcome], obstacle, obstacle_radius: float, output_path: Path) -> None:
    fig, ax = plt.subplots(figsize=(8, 5))

    angles = np.linspace(0.0, 2.0 * np.pi, 200)
    ax.fill(
        obstacle[0] + obstacle_radius * np.cos(angles),
        obstacle[1] + obstacle_radius * np.sin(angles),
        alpha=0.25,
        label="robot B reservation",
    )

    for outcome in outcomes:
        if outcome.leg is None:
            continue
        leg = outcome.leg
        style = "--" if outcome.state is PlanState.DEFLECT else "-"
        ax.plot([leg.start.x, leg.end.x], [leg.start.y, leg.end.y], style, marker="o",
                label=f"attempt {outcome.attempt} ({outcome.state.value})")

    ax.set_aspect("equal")
    ax.set_xlabel("x (cm)")
    ax.set_ylabel("y (cm)")
    ax.legend(loc="best")
    plt.tight_layout()
    plt.savefig(output_path, dpi=150, bbox_inches="tight")
    plt.close(fig)


def main() -> int:
    args = parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    coordinator, link = run_scenario(args.target, args.obstacle, args.max_calls)
    outcomes = [outcome for outcome in coordinator.history if outcome.robot_id == 1]

    print("Planning attempts:")
    for outcome in outcomes:
        leg = outcome.leg
        detail = "" if leg is None else (
            f" turn={leg.turn_degrees:7.2f}° dist={leg.distance:7.2f} -> ({leg.end.x:.1f}, {leg.end.y:.1f})"
        )
        print(f"  #{outcome.attempt} {outcome.state.value:<10}{detail}")

    print("\nCommand log:")
    for entry in link.sent:
        cmd = entry.command
        print(f"  t={entry.at_ms:9.1f} ms  {cmd.tag.decode()} {cmd.left:5d} {cmd.right:5d}")

    obstacle_radius = coordinator.fleet.get(2).ledger.radius
    args.figure.parent.mkdir(parents=True, exist_ok=True)
    plot_legs(outcomes, args.obstacle, obstacle_radius, args.figure)
    print(f"\nSaved chart to {args.figure}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
