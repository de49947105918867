"""Delayed, non-blocking continuations for command sequencing.

The coordinator never sleeps: settling delays, stop commands, and deflection
retries are scheduled through a :class:`Scheduler`.  Two implementations are
provided:

* :class:`ThreadedScheduler` runs callbacks on ``threading.Timer`` threads
  against the wall clock (milliseconds since the epoch).
* :class:`SimulatedScheduler` keeps a virtual clock and a min-heap of pending
  calls; nothing runs until the owner advances time, which makes multi-leg
  command chains reproducible in tests and offline simulations.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Set, Tuple

logger = logging.getLogger(__name__)


class ScheduledCall(ABC):
    """Handle returned by :meth:`Scheduler.call_later`."""

    @abstractmethod
    def cancel(self) -> None:
        ...


class Scheduler(ABC):
    """Clock plus a facility to run a callback after a delay."""

    @abstractmethod
    def now_ms(self) -> float:
        ...

    @abstractmethod
    def call_later(self, delay_ms: float, callback: Callable[..., Any], *args: Any) -> ScheduledCall:
        ...


# ========== simulated clock ==========


@dataclass(order=True)
class _PendingCall(ScheduledCall):
    sort_index: Tuple[float, int] = field(init=False, repr=False)
    due_ms: float
    seq: int
    callback: Callable[..., Any] = field(compare=False)
    args: Tuple[Any, ...] = field(default=(), compare=False)
    cancelled: bool = field(default=False, compare=False)

    def __post_init__(self) -> None:
        self.sort_index = (self.due_ms, self.seq)

    def cancel(self) -> None:
        self.cancelled = True


class SimulatedScheduler(Scheduler):
    """Virtual-time scheduler driven explicitly by the caller."""

    def __init__(self, start_ms: float = 0.0) -> None:
        self._now = float(start_ms)
        self._heap: List[_PendingCall] = []
        self._counter = itertools.count()

    def now_ms(self) -> float:
        return self._now

    def call_later(self, delay_ms: float, callback: Callable[..., Any], *args: Any) -> ScheduledCall:
        pending = _PendingCall(
            due_ms=self._now + max(0.0, delay_ms),
            seq=next(self._counter),
            callback=callback,
            args=args,
        )
        heapq.heappush(self._heap, pending)
        return pending

    def next_due_ms(self) -> Optional[float]:
        self._discard_cancelled()
        if not self._heap:
            return None
        return self._heap[0].due_ms

    def advance(self, delta_ms: float) -> int:
        """Move the clock forward, running every call that falls due on the way."""

        target = self._now + max(0.0, delta_ms)
        executed = 0
        while True:
            due = self.next_due_ms()
            if due is None or due > target:
                break
            executed += self._run_next()
        self._now = target
        return executed

    def run_until_idle(self, max_calls: int = 10_000) -> int:
        """Run pending calls in due order until none remain or ``max_calls`` ran."""

        executed = 0
        while executed < max_calls and self.next_due_ms() is not None:
            executed += self._run_next()
        return executed

    def _run_next(self) -> int:
        pending = heapq.heappop(self._heap)
        self._now = max(self._now, pending.due_ms)
        pending.callback(*pending.args)
        return 1

    def _discard_cancelled(self) -> None:
        while self._heap and self._heap[0].cancelled:
            heapq.heappop(self._heap)

    def __len__(self) -> int:
        return sum(1 for pending in self._heap if not pending.cancelled)


# ========== wall clock ==========


class _TimerCall(ScheduledCall):
    def __init__(self, timer: threading.Timer) -> None:
        self._timer = timer

    def cancel(self) -> None:
        self._timer.cancel()


class ThreadedScheduler(Scheduler):
    """Wall-clock scheduler backed by one daemon ``threading.Timer`` per call."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._timers: Set[threading.Timer] = set()

    def now_ms(self) -> float:
        return time.time() * 1000.0

    def call_later(self, delay_ms: float, callback: Callable[..., Any], *args: Any) -> ScheduledCall:
        timer: threading.Timer

        def _run() -> None:
            with self._lock:
                self._timers.discard(timer)
            try:
                callback(*args)
            except Exception:
                logger.exception("Scheduled callback %r failed", callback)

        timer = threading.Timer(max(0.0, delay_ms) / 1000.0, _run)
        timer.daemon = True
        with self._lock:
            self._timers.add(timer)
        timer.start()
        return _TimerCall(timer)

    def cancel_all(self) -> None:
        with self._lock:
            timers = list(self._timers)
            self._timers.clear()
        for timer in timers:
            timer.cancel()

    def __len__(self) -> int:
        with self._lock:
            return len(self._timers)


__all__ = ["Scheduler", "ScheduledCall", "SimulatedScheduler", "ThreadedScheduler"]
