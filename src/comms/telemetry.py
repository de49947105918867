"""Parsing of the inbound pose records.

Each record is 20 bytes, little-endian::

    int32   robot id
    float32 x        (raw units, divided by the position scale)
    float32 y        (raw units, divided by the position scale)
    float64 heading  (radians)

A datagram may carry several records back to back.  Short records are invalid.
"""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from typing import List

from config import DEFAULT_TELEMETRY, TelemetryDefaults
from core.errors import InvalidTelemetry

logger = logging.getLogger(__name__)

RECORD_FORMAT = "<iffd"
RECORD_SIZE = struct.calcsize(RECORD_FORMAT)


@dataclass(frozen=True)
class TelemetryRecord:
    robot_id: int
    x: float
    y: float
    theta: float


def parse_record(payload: bytes, settings: TelemetryDefaults = DEFAULT_TELEMETRY) -> TelemetryRecord:
    """Decode one record from the start of ``payload``.

    Raises:
        InvalidTelemetry: if fewer than ``RECORD_SIZE`` bytes are available.
    """
    if len(payload) < RECORD_SIZE:
        raise InvalidTelemetry(f"Telemetry record needs {RECORD_SIZE} bytes, got {len(payload)}")
    robot_id, raw_x, raw_y, theta = struct.unpack_from(RECORD_FORMAT, payload)
    return TelemetryRecord(
        robot_id=robot_id,
        x=raw_x / settings.position_scale,
        y=raw_y / settings.position_scale,
        theta=theta,
    )


def parse_datagram(payload: bytes, settings: TelemetryDefaults = DEFAULT_TELEMETRY) -> List[TelemetryRecord]:
    """Decode every complete record in a datagram, dropping a trailing fragment.

    Raises:
        InvalidTelemetry: if the datagram holds no complete record at all.
    """
    if len(payload) < RECORD_SIZE:
        raise InvalidTelemetry(f"Telemetry datagram too short: {len(payload)} bytes")

    complete = len(payload) - len(payload) % RECORD_SIZE
    if complete != len(payload):
        logger.warning(
            "Discarding %d trailing telemetry byte(s) after %d record(s)",
            len(payload) - complete,
            complete // RECORD_SIZE,
        )
    return [
        parse_record(payload[offset:offset + RECORD_SIZE], settings)
        for offset in range(0, complete, RECORD_SIZE)
    ]


def encode_record(record: TelemetryRecord, settings: TelemetryDefaults = DEFAULT_TELEMETRY) -> bytes:
    """Inverse of :func:`parse_record`, used by simulators and tests."""

    return struct.pack(
        RECORD_FORMAT,
        record.robot_id,
        record.x * settings.position_scale,
        record.y * settings.position_scale,
        record.theta,
    )


__all__ = [
    "RECORD_FORMAT",
    "RECORD_SIZE",
    "TelemetryRecord",
    "parse_record",
    "parse_datagram",
    "encode_record",
]
