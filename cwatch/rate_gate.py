"""
rate_gate.py
Client-side API budget: 90 calls per 60 second window.
When the budget is spent the gate pauses; a 1 s countdown publishes the
remaining pause time and resets everything when it reaches zero.
Callers check is_paused() and skip their request instead of queueing it.
"""

from __future__ import annotations

import math
import time
import logging
from typing import Callable

log = logging.getLogger(__name__)


class RateGate:
    def __init__(
        self,
        scheduler,
        limit: int = 90,
        window: int = 60,
        clock: Callable[[], float] = time.time,
        on_count: Callable[[int], None] | None = None,
        on_pause_tick: Callable[[int], None] | None = None,
    ):
        self.scheduler = scheduler
        self.limit = limit
        self.window = window
        self.clock = clock
        self.on_count = on_count
        self.on_pause_tick = on_pause_tick

        self.call_count = 0
        self.window_start: float | None = None
        self.paused = False
        self.resume_in = 0
        self._pause_timer = None

    def is_paused(self) -> bool:
        return self.paused

    def register_call(self):
        """Account for one completed API request."""
        now = self.clock()
        if (not self.paused and self.window_start is not None
                and now - self.window_start >= self.window):
            # window lapsed: the new call opens a fresh one
            self._reset(now)

        self.call_count += 1
        if self.window_start is None:
            self.window_start = now
        self._publish_count()

        elapsed = now - self.window_start
        if self.call_count >= self.limit and not self.paused:
            self._pause(math.ceil(self.window - elapsed))

    def _pause(self, seconds: int):
        log.warning("API call limit reached. Pausing for %d seconds...", seconds)
        self.paused = True
        self.resume_in = seconds
        if self._pause_timer is not None:
            self._pause_timer.cancel()
        self._pause_timer = self.scheduler.schedule(1, self._pause_tick)

    def _pause_tick(self):
        self.resume_in -= 1
        if self.on_pause_tick:
            self.on_pause_tick(max(self.resume_in, 0))
        if self.resume_in <= 0:
            self._pause_timer.cancel()
            self._pause_timer = None
            self._reset(self.clock())
            log.info("API calls resumed")

    def _reset(self, now: float):
        self.call_count = 0
        self.window_start = now
        self.paused = False
        self.resume_in = 0
        self._publish_count()

    def _publish_count(self):
        if self.on_count:
            self.on_count(self.call_count)

    def cancel(self):
        if self._pause_timer is not None:
            self._pause_timer.cancel()
            self._pause_timer = None
