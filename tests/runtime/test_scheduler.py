"""Simulated and threaded continuation schedulers."""

import threading

from runtime.scheduler import SimulatedScheduler, ThreadedScheduler


def test_simulated_calls_run_in_due_order():
    scheduler = SimulatedScheduler(start_ms=1000.0)
    calls = []

    scheduler.call_later(100.0, calls.append, "late")
    scheduler.call_later(50.0, calls.append, "first")
    scheduler.call_later(50.0, calls.append, "second")

    assert scheduler.advance(60.0) == 2
    assert calls == ["first", "second"]
    assert scheduler.now_ms() == 1060.0

    scheduler.advance(100.0)
    assert calls == ["first", "second", "late"]
    assert scheduler.now_ms() == 1160.0
    assert len(scheduler) == 0


def test_clock_reads_due_time_inside_callback():
    scheduler = SimulatedScheduler()
    seen = []

    scheduler.call_later(250.0, lambda: seen.append(scheduler.now_ms()))
    scheduler.advance(1000.0)

    assert seen == [250.0]


def test_cancelled_call_never_runs():
    scheduler = SimulatedScheduler()
    calls = []

    handle = scheduler.call_later(10.0, calls.append, "x")
    handle.cancel()

    assert scheduler.run_until_idle() == 0
    assert calls == []


def test_run_until_idle_follows_chained_continuations():
    scheduler = SimulatedScheduler()
    calls = []

    def step(n):
        calls.append((n, scheduler.now_ms()))
        if n < 3:
            scheduler.call_later(100.0, step, n + 1)

    scheduler.call_later(0.0, step, 1)
    scheduler.run_until_idle()

    assert calls == [(1, 0.0), (2, 100.0), (3, 200.0)]


def test_threaded_scheduler_fires_callback():
    scheduler = ThreadedScheduler()
    fired = threading.Event()

    scheduler.call_later(10.0, fired.set)

    assert fired.wait(timeout=2.0)
    scheduler.cancel_all()


def test_threaded_cancel_all_prevents_pending_calls():
    scheduler = ThreadedScheduler()
    fired = threading.Event()

    scheduler.call_later(5_000.0, fired.set)
    scheduler.cancel_all()

    assert not fired.wait(timeout=0.1)
    assert len(scheduler) == 0
