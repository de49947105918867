"""Timers and clocks used to sequence robot commands."""

from runtime.scheduler import ScheduledCall, Scheduler, SimulatedScheduler, ThreadedScheduler

__all__ = ["ScheduledCall", "Scheduler", "SimulatedScheduler", "ThreadedScheduler"]
