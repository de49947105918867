"""Encoding of the 5-byte drive/turn commands understood by the robots.

Layout: one ASCII tag byte followed by two signed 16-bit little-endian
parameters.

* ``'D'`` differential move, used for turning in place: ``(+ticks, -ticks)``
  with ``ticks = turn_ticks_per_revolution * degrees / 360``.
* ``'S'`` symmetric speed: ``(left, right)`` wheel speeds; ``(0, 0)`` stops.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

from config import DEFAULT_MOTION, MotionDefaults

COMMAND_FORMAT = "<chh"
COMMAND_SIZE = struct.calcsize(COMMAND_FORMAT)

TAG_DIFFERENTIAL = b"D"
TAG_SYMMETRIC = b"S"

_INT16_MIN = -(2 ** 15)
_INT16_MAX = 2 ** 15 - 1


@dataclass(frozen=True)
class Command:
    tag: bytes
    left: int
    right: int

    def encode(self) -> bytes:
        return struct.pack(COMMAND_FORMAT, self.tag, self.left, self.right)

    @classmethod
    def decode(cls, payload: bytes) -> "Command":
        if len(payload) != COMMAND_SIZE:
            raise ValueError(f"Command payload must be {COMMAND_SIZE} bytes, got {len(payload)}")
        tag, left, right = struct.unpack(COMMAND_FORMAT, payload)
        return cls(tag=tag, left=left, right=right)

    @property
    def is_stop(self) -> bool:
        return self.tag == TAG_SYMMETRIC and self.left == 0 and self.right == 0


def _to_int16(value: float) -> int:
    as_int = int(value)  # truncates toward zero like the firmware expects
    if not _INT16_MIN <= as_int <= _INT16_MAX:
        raise ValueError(f"Command parameter {value} does not fit in int16")
    return as_int


def turn_ticks(degrees: float, motion: MotionDefaults = DEFAULT_MOTION) -> int:
    return _to_int16(motion.turn_ticks_per_revolution * degrees / 360.0)


def turn_command(degrees: float, motion: MotionDefaults = DEFAULT_MOTION) -> Command:
    ticks = turn_ticks(degrees, motion)
    return Command(TAG_DIFFERENTIAL, ticks, -ticks)


def drive_command(speed: float) -> Command:
    wheel = _to_int16(speed)
    return Command(TAG_SYMMETRIC, wheel, wheel)


def stop_command() -> Command:
    return Command(TAG_SYMMETRIC, 0, 0)


__all__ = [
    "COMMAND_FORMAT",
    "COMMAND_SIZE",
    "TAG_DIFFERENTIAL",
    "TAG_SYMMETRIC",
    "Command",
    "turn_ticks",
    "turn_command",
    "drive_command",
    "stop_command",
]
