# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Deterministic clock for tests and simulations.

Time only moves when ``advance()`` is awaited. Due callbacks run in
deadline order (ties broken by scheduling order) and are awaited inline, so
a test observes every transition as soon as ``advance()`` returns.
"""

from __future__ import annotations

import heapq
import itertools

from ..protocols.clock import TimerCallback


class ManualTimer:
    """Handle for a callback scheduled on a ManualClock."""

    def __init__(self, deadline: float, callback: TimerCallback) -> None:
        self.deadline = deadline
        self._callback = callback
        self._cancelled = False
        self._fired = False

    def cancel(self) -> None:
        self._cancelled = True

    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def fired(self) -> bool:
        return self._fired

    async def fire(self) -> None:
        """
        Run the callback now, even if the timer was cancelled.

        Simulates a timer whose cancellation lost the race with its own
        firing.
        """
        self._fired = True
        await self._callback()


class ManualClock:
    """
    Clock whose time is advanced explicitly.

    Example:
        >>> clock = ManualClock()
        >>> scheduler = TenantScheduler("guild-1", clock=clock)
        >>> await scheduler.request_access("alice")
        >>> await clock.advance(180)  # reservation lapses
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._heap: list[tuple[float, int, ManualTimer]] = []
        self._counter = itertools.count()
        self._history: list[ManualTimer] = []

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: TimerCallback) -> ManualTimer:
        timer = ManualTimer(self._now + max(0.0, delay), callback)
        heapq.heappush(self._heap, (timer.deadline, next(self._counter), timer))
        self._history.append(timer)
        return timer

    async def advance(self, seconds: float) -> None:
        """
        Move time forward, running every callback that falls due.

        Callbacks scheduled by other callbacks are also run if their
        deadline is within the window.

        Args:
            seconds: How far to move the clock (must be non-negative)
        """
        if seconds < 0:
            raise ValueError("Cannot move a clock backwards")

        target = self._now + seconds
        while self._heap and self._heap[0][0] <= target:
            deadline, _, timer = heapq.heappop(self._heap)
            if timer.cancelled():
                continue
            self._now = max(self._now, deadline)
            await timer.fire()
        self._now = target

    async def run_due(self) -> None:
        """Run callbacks that are already due without moving time."""
        await self.advance(0)

    @property
    def timers(self) -> list[ManualTimer]:
        """Every timer ever scheduled, in scheduling order."""
        return list(self._history)

    @property
    def pending(self) -> list[ManualTimer]:
        """Timers that are neither cancelled nor fired, soonest first."""
        return [
            timer
            for _, _, timer in sorted(self._heap, key=lambda entry: entry[:2])
            if not timer.cancelled() and not timer.fired
        ]

    def next_deadline(self) -> float | None:
        pending = self.pending
        return pending[0].deadline if pending else None
