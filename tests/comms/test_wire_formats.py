"""Outbound command encoding and inbound telemetry parsing."""

import logging
import math
import struct

import pytest

from comms.commands import (
    COMMAND_SIZE,
    Command,
    drive_command,
    stop_command,
    turn_command,
    turn_ticks,
)
from comms.telemetry import RECORD_SIZE, TelemetryRecord, encode_record, parse_datagram, parse_record
from comms.transport import RecordingLink
from core.errors import InvalidTelemetry


def test_command_layout_is_five_bytes():
    assert COMMAND_SIZE == 5
    assert RECORD_SIZE == 20


@pytest.mark.parametrize(
    "degrees,ticks",
    [(0.0, 0), (90.0, 25), (-90.0, -25), (180.0, 50), (-45.0, -12), (360.0, 100)],
)
def test_turn_ticks_from_degrees(degrees, ticks):
    assert turn_ticks(degrees) == ticks


def test_turn_command_is_differential():
    payload = turn_command(90.0).encode()
    assert payload == b"D" + struct.pack("<hh", 25, -25)


def test_drive_and_stop_commands_are_symmetric():
    assert drive_command(50.0).encode() == b"S\x32\x00\x32\x00"
    assert stop_command().encode() == b"S\x00\x00\x00\x00"
    assert stop_command().is_stop
    assert not drive_command(50.0).is_stop


def test_decode_inverts_encode():
    command = Command.decode(b"D" + struct.pack("<hh", -12, 12))
    assert command == turn_command(-45.0)

    with pytest.raises(ValueError):
        Command.decode(b"S\x00")


def test_out_of_range_parameter_is_rejected():
    with pytest.raises(ValueError):
        drive_command(40_000)


def test_parse_record_scales_position():
    payload = struct.pack("<iffd", 7, 1234.0, -50.0, math.pi / 2)

    record = parse_record(payload)

    assert record.robot_id == 7
    assert record.x == pytest.approx(123.4, rel=1e-6)
    assert record.y == pytest.approx(-5.0)
    assert record.theta == pytest.approx(math.pi / 2)


@pytest.mark.parametrize("size", [0, 1, 12, 19])
def test_short_record_is_invalid(size):
    with pytest.raises(InvalidTelemetry):
        parse_record(b"\x00" * size)
    with pytest.raises(InvalidTelemetry):
        parse_datagram(b"\x00" * size)


def test_datagram_with_several_records_and_a_fragment(caplog):
    first = encode_record(TelemetryRecord(robot_id=1, x=10.0, y=20.0, theta=0.0))
    second = encode_record(TelemetryRecord(robot_id=2, x=-3.5, y=0.0, theta=1.0))

    with caplog.at_level(logging.WARNING, logger="comms.telemetry"):
        records = parse_datagram(first + second + b"\x01\x02\x03")

    assert [r.robot_id for r in records] == [1, 2]
    assert records[1].x == pytest.approx(-3.5)
    assert "trailing" in caplog.text


def test_recording_link_keeps_order_and_timestamps():
    clock = iter([5.0, 10.0])
    link = RecordingLink(clock=lambda: next(clock))

    link.send("10.0.0.1", turn_command(90.0))
    link.send("10.0.0.2", stop_command())

    assert [entry.at_ms for entry in link.sent] == [5.0, 10.0]
    assert link.commands_for("10.0.0.2") == [stop_command()]
