"""RateGate budget, pause and auto-resume."""

from __future__ import annotations

from cwatch.rate_gate import RateGate


def _gate(clock, scheduler, **kw):
    return RateGate(scheduler, limit=90, window=60, clock=clock, **kw)


def test_pauses_exactly_on_the_limit_call(clock, scheduler):
    gate = _gate(clock, scheduler)
    for _ in range(89):
        gate.register_call()
    assert not gate.is_paused()

    clock.advance(20)
    gate.register_call()
    assert gate.is_paused()
    assert gate.resume_in == 40


def test_resumes_after_remaining_seconds(clock, scheduler):
    gate = _gate(clock, scheduler)
    gate.register_call()
    clock.advance(20.5)
    for _ in range(89):
        gate.register_call()
    assert gate.is_paused()
    assert gate.resume_in == 40  # ceil(60 - 20.5)

    scheduler.advance(39)
    assert gate.is_paused()
    scheduler.advance(1)
    assert not gate.is_paused()
    assert gate.call_count == 0
    assert scheduler.active_timers == 0


def test_pause_countdown_is_published(clock, scheduler):
    ticks = []
    gate = _gate(clock, scheduler, on_pause_tick=ticks.append)
    for _ in range(90):
        gate.register_call()
    scheduler.advance(60)
    assert ticks == list(range(59, -1, -1))


def test_lapsed_window_starts_fresh(clock, scheduler):
    gate = _gate(clock, scheduler)
    for _ in range(89):
        gate.register_call()
    clock.advance(60)
    gate.register_call()
    assert not gate.is_paused()
    assert gate.call_count == 1
    assert gate.window_start == clock.now


def test_calls_spread_over_windows_never_pause(clock, scheduler):
    gate = _gate(clock, scheduler)
    for _ in range(5):
        for _ in range(80):
            gate.register_call()
        clock.advance(61)
    assert not gate.is_paused()


def test_counter_callback_follows_calls(clock, scheduler):
    counts = []
    gate = _gate(clock, scheduler, on_count=counts.append)
    gate.register_call()
    gate.register_call()
    assert counts == [1, 2]


def test_cancel_stops_pause_timer(clock, scheduler):
    gate = RateGate(scheduler, limit=1, window=60, clock=clock)
    gate.register_call()
    assert gate.is_paused()
    gate.cancel()
    scheduler.advance(120)
    assert gate.is_paused()
    assert scheduler.active_timers == 0
