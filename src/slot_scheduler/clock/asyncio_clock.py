# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Event-loop backed clock.

Timers are scheduled with ``loop.call_later``; when one fires, its callback
runs on a fresh task so that it can acquire the tenant lock like any other
caller.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

from ..protocols.clock import TimerCallback

logger = logging.getLogger(__name__)


class AsyncioTimer:
    """Cancellable handle for a callback scheduled on the running loop."""

    def __init__(self, clock: AsyncioClock, callback: TimerCallback) -> None:
        self._clock = clock
        self._callback = callback
        self._handle: asyncio.TimerHandle | None = None
        self._cancelled = False
        self._fired = False

    def _fire(self) -> None:
        if self._cancelled:
            return
        self._fired = True
        self._clock._spawn(self._callback)

    def cancel(self) -> None:
        # A callback whose task already started keeps running; the scheduler's
        # generation check turns it into a no-op.
        self._cancelled = True
        if self._handle is not None:
            self._handle.cancel()

    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def fired(self) -> bool:
        return self._fired


class AsyncioClock:
    """
    Production clock using the running asyncio event loop.

    ``now()`` uses ``time.monotonic()``, the same scale as ``loop.time()``,
    so deadlines are immune to wall-clock adjustments.

    The clock keeps strong references to the tasks it spawns until they
    finish, and logs any exception a callback raises.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()

    def now(self) -> float:
        return time.monotonic()

    def call_later(self, delay: float, callback: TimerCallback) -> AsyncioTimer:
        """
        Schedule ``callback`` to run after ``delay`` seconds.

        Must be called from within a running event loop.

        Args:
            delay: Seconds to wait; negative values fire on the next loop turn
            callback: Zero-argument coroutine function

        Returns:
            A cancellable AsyncioTimer
        """
        loop = asyncio.get_running_loop()
        timer = AsyncioTimer(self, callback)
        timer._handle = loop.call_later(max(0.0, delay), timer._fire)
        return timer

    def _spawn(self, callback: TimerCallback) -> None:
        task = asyncio.ensure_future(callback())
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Timer callback failed: %s", exc, exc_info=exc)

    @property
    def pending_callbacks(self) -> int:
        """Number of fired callbacks still running."""
        return len(self._tasks)

    async def wait_for_callbacks(self) -> None:
        """Wait until every fired callback has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
