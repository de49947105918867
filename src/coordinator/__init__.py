"""Fleet coordination: shared fleet state, conflict detection, re-planning."""

from coordinator.conflict import Conflict, find_conflicts, nearest_conflict
from coordinator.fleet_state import FleetState
from coordinator.replanner import Coordinator, Leg, PlanOutcome, PlanState, turn_angle, wrap_degrees

__all__ = [
    "Conflict",
    "find_conflicts",
    "nearest_conflict",
    "FleetState",
    "Coordinator",
    "Leg",
    "PlanOutcome",
    "PlanState",
    "turn_angle",
    "wrap_degrees",
]
