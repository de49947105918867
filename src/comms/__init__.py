"""Wire formats and UDP links for telemetry and robot commands."""

from comms.commands import Command, drive_command, stop_command, turn_command
from comms.telemetry import RECORD_SIZE, TelemetryRecord, encode_record, parse_datagram, parse_record
from comms.transport import CommandLink, RecordingLink, SentCommand, TelemetryListener, UdpCommandLink

__all__ = [
    "Command",
    "drive_command",
    "stop_command",
    "turn_command",
    "RECORD_SIZE",
    "TelemetryRecord",
    "encode_record",
    "parse_datagram",
    "parse_record",
    "CommandLink",
    "RecordingLink",
    "SentCommand",
    "TelemetryListener",
    "UdpCommandLink",
]
