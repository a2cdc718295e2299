"""
countdown.py
Local 1 s countdown for the active chain.

Every tick recomputes remaining = end_timestamp - now, so a late or missed
tick never accumulates drift. The warning threshold is edge-triggered:
on_warning_enter fires once per episode, on_warning on every tick inside it.
"""

from __future__ import annotations

import enum
import time
import logging
from typing import Callable

from .chain import ChainState

log = logging.getLogger(__name__)


def _noop(*_):
    pass


class ClockState(enum.Enum):
    STOPPED = "stopped"
    RUNNING = "running"


class CountdownClock:
    def __init__(
        self,
        scheduler,
        clock: Callable[[], float] = time.time,
        threshold: int = 150,
        on_tick: Callable[[int, int], None] = _noop,
        on_stopped: Callable[[], None] = _noop,
        on_warning_enter: Callable[[], None] = _noop,
        on_warning: Callable[[int], None] = _noop,
        on_warning_leave: Callable[[], None] = _noop,
    ):
        self.scheduler = scheduler
        self.clock = clock
        self.threshold = threshold
        self.on_tick = on_tick
        self.on_stopped = on_stopped
        self.on_warning_enter = on_warning_enter
        self.on_warning = on_warning
        self.on_warning_leave = on_warning_leave

        self.chain: ChainState | None = None
        self.status = ClockState.STOPPED
        self.in_warning = False
        self._timer = None

    @property
    def running(self) -> bool:
        return self.status is ClockState.RUNNING

    def remaining(self) -> int | None:
        if self.chain is None:
            return None
        return self.chain.remaining(self.clock())

    def update(self, chain: ChainState):
        """Take a fresh poll result and publish it right away."""
        self.chain = chain
        now = self.clock()
        if chain.is_active(now):
            if not self.running:
                self._start()
            self._publish(chain.remaining(now))
        else:
            self.stop()

    def _start(self):
        log.debug("countdown started")
        self.status = ClockState.RUNNING
        self._timer = self.scheduler.schedule(1, self.tick)

    def tick(self):
        if not self.running or self.chain is None:
            return
        remaining = self.chain.remaining(self.clock())
        if remaining is not None and remaining > 0:
            self._publish(remaining)
        else:
            log.info("Chain expired")
            self.stop()

    def _publish(self, remaining: int):
        self.on_tick(self.chain.current_count, remaining)

        if remaining <= self.threshold:
            if not self.in_warning:
                self.in_warning = True
                log.info("Chain below %ds, entering warning", self.threshold)
                self.on_warning_enter()
            self.on_warning(remaining)
        elif self.in_warning:
            self.in_warning = False
            self.on_warning_leave()

    def stop(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self.status = ClockState.STOPPED
        if self.in_warning:
            self.in_warning = False
            self.on_warning_leave()
        self.on_stopped()
