"""UDP links between the coordinator and the robots.

Outbound commands go through a :class:`CommandLink`; the UDP implementation
sends each command as its own datagram to the robot's command port.  Inbound
telemetry is read by :class:`TelemetryListener` on a background thread and
handed to a callback as raw bytes.
"""

from __future__ import annotations

import logging
import socket
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, List, Optional

from comms.commands import Command
from config import DEFAULT_ROBOT_DEFAULTS, DEFAULT_TELEMETRY, TelemetryDefaults

logger = logging.getLogger(__name__)


class CommandLink(ABC):
    @abstractmethod
    def send(self, address: Optional[str], command: Command) -> None:
        ...

    def close(self) -> None:
        """Release any underlying resources."""


class UdpCommandLink(CommandLink):
    """Fire-and-forget UDP sender; send errors are logged, never raised."""

    def __init__(self, port: int = DEFAULT_ROBOT_DEFAULTS.command_port) -> None:
        self.port = port
        self._socket = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)

    def send(self, address: Optional[str], command: Command) -> None:
        if address is None:
            logger.warning("No address configured; dropping %r", command)
            return
        try:
            self._socket.sendto(command.encode(), (address, self.port))
        except OSError as exc:
            logger.error("Send error to %s:%d: %s", address, self.port, exc)

    def close(self) -> None:
        self._socket.close()


@dataclass(frozen=True)
class SentCommand:
    address: Optional[str]
    command: Command
    at_ms: Optional[float] = None


class RecordingLink(CommandLink):
    """In-memory link that keeps every command, for simulation and tests."""

    def __init__(self, clock: Optional[Callable[[], float]] = None) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self.sent: List[SentCommand] = []

    def send(self, address: Optional[str], command: Command) -> None:
        at_ms = self._clock() if self._clock is not None else None
        with self._lock:
            self.sent.append(SentCommand(address=address, command=command, at_ms=at_ms))

    def commands_for(self, address: Optional[str]) -> List[Command]:
        with self._lock:
            return [entry.command for entry in self.sent if entry.address == address]

    def clear(self) -> None:
        with self._lock:
            self.sent.clear()


class TelemetryListener:
    """Background UDP receive loop feeding raw datagrams to ``handler``."""

    def __init__(
        self,
        handler: Callable[[bytes], None],
        *,
        settings: TelemetryDefaults = DEFAULT_TELEMETRY,
        poll_interval_s: float = 0.5,
    ) -> None:
        self.handler = handler
        self.settings = settings
        self.poll_interval_s = poll_interval_s
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._socket: Optional[socket.socket] = None

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("Telemetry listener already started")
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((self.settings.listen_host, self.settings.listen_port))
        sock.settimeout(self.poll_interval_s)
        self._socket = sock
        self._thread = threading.Thread(target=self.loop, args=(self._stop_event,), daemon=True)
        self._thread.start()
        logger.info(
            "Listening for telemetry on %s:%d",
            self.settings.listen_host,
            self.settings.listen_port,
        )

    def loop(self, stop_event: threading.Event) -> None:
        assert self._socket is not None
        while not stop_event.is_set():
            try:
                payload, sender = self._socket.recvfrom(self.settings.buffer_size)
            except socket.timeout:
                continue
            except OSError as exc:
                if stop_event.is_set():
                    break
                logger.error("Telemetry socket error: %s", exc)
                continue
            logger.debug("Telemetry datagram of %d byte(s) from %s", len(payload), sender)
            self.handler(payload)

    def stop(self, timeout_s: float = 2.0) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout_s)
            self._thread = None
        if self._socket is not None:
            self._socket.close()
            self._socket = None


__all__ = [
    "CommandLink",
    "UdpCommandLink",
    "RecordingLink",
    "SentCommand",
    "TelemetryListener",
]
