"""Error taxonomy shared by the geometry kernel, ledger, and coordinator.

A missing intersection is not an error: the geometry helpers return ``None``
for it.  Everything below aborts the single planning attempt or telemetry
record that triggered it.
"""

from __future__ import annotations


class CoordinationError(Exception):
    """Base class for all coordinator failures."""


class DegenerateVector(CoordinationError, ValueError):
    """Raised when a zero-length vector has to be normalised."""


class DegenerateGeometry(CoordinationError, ValueError):
    """Raised when a construction is undefined, e.g. tangents from inside a circle."""


class UnknownRobot(CoordinationError, LookupError):
    """Raised when a command references a robot id that was never observed."""

    def __init__(self, robot_id: int) -> None:
        super().__init__(f"Unknown robot id: {robot_id}")
        self.robot_id = robot_id


class InvalidTelemetry(CoordinationError, ValueError):
    """Raised for malformed or truncated telemetry records."""


__all__ = [
    "CoordinationError",
    "DegenerateVector",
    "DegenerateGeometry",
    "UnknownRobot",
    "InvalidTelemetry",
]
