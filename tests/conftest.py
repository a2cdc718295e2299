"""Shared fixtures: a settable clock and a scheduler driven by simulated seconds."""

from __future__ import annotations

import asyncio

import pytest

T0 = 1_700_000_000


class FakeClock:
    def __init__(self, now: float = T0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class ManualHandle:
    def __init__(self):
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class ManualScheduler:
    """Fires due timers in schedule order each time the clock moves one second."""

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.timers: list[list] = []
        self.tasks: list[asyncio.Task] = []

    def schedule(self, period, callback):
        handle = ManualHandle()
        self.timers.append([handle, period, callback, self.clock.now + period])
        return handle

    def spawn(self, coro):
        task = asyncio.ensure_future(coro)
        self.tasks.append(task)
        return task

    def advance(self, seconds: int = 1):
        for _ in range(seconds):
            self.clock.advance(1)
            for entry in list(self.timers):
                handle, period, callback, due = entry
                if handle.cancelled:
                    continue
                if due <= self.clock.now:
                    entry[3] = due + period
                    result = callback()
                    if asyncio.iscoroutine(result):
                        self.spawn(result)
            self.timers = [e for e in self.timers if not e[0].cancelled]

    async def drain(self):
        while True:
            pending = [t for t in self.tasks if not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    @property
    def active_timers(self) -> int:
        return sum(1 for e in self.timers if not e[0].cancelled)

    def cancel_all(self):
        for e in self.timers:
            e[0].cancel()
        self.timers = []
        for t in self.tasks:
            t.cancel()


class StubGate:
    def __init__(self):
        self.paused = False
        self.calls = 0

    def is_paused(self):
        return self.paused

    def register_call(self):
        self.calls += 1


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scheduler(clock):
    return ManualScheduler(clock)


@pytest.fixture
def gate():
    return StubGate()
