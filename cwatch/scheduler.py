"""
scheduler.py
Periodic timers on top of asyncio.
schedule(period, callback) -> TimerHandle; callbacks may be plain functions
or return a coroutine, which is spawned as a background task so a slow
network call never holds up the next tick.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

log = logging.getLogger(__name__)


class TimerHandle:
    def __init__(self, task: asyncio.Task | None = None):
        self._task = task
        self.cancelled = False

    def cancel(self):
        self.cancelled = True
        if self._task is not None:
            self._task.cancel()


class AsyncioScheduler:
    def __init__(self):
        self._handles: set[TimerHandle] = set()
        self._tasks: set[asyncio.Task] = set()

    def schedule(self, period: float, callback: Callable[[], object]) -> TimerHandle:
        handle = TimerHandle()
        handle._task = asyncio.create_task(self._run(period, callback, handle))
        self._handles.add(handle)
        return handle

    async def _run(self, period, callback, handle):
        try:
            while not handle.cancelled:
                await asyncio.sleep(period)
                if handle.cancelled:
                    break
                try:
                    result = callback()
                    if asyncio.iscoroutine(result):
                        self.spawn(result)
                except Exception:
                    log.exception("timer callback %r failed", callback)
        finally:
            self._handles.discard(handle)

    def spawn(self, coro: Awaitable) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task):
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            log.error("background task failed: %s", exc, exc_info=exc)

    @property
    def active_timers(self) -> int:
        return sum(1 for h in self._handles if not h.cancelled)

    def cancel_all(self):
        """Stop every timer; in-flight background tasks are abandoned."""
        for h in list(self._handles):
            h.cancel()
        self._handles.clear()
        for t in list(self._tasks):
            t.cancel()
        self._tasks.clear()
