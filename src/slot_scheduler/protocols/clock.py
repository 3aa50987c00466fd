# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Protocols for time and delayed execution."""

from collections.abc import Awaitable, Callable
from typing import Protocol, runtime_checkable

TimerCallback = Callable[[], Awaitable[None]]
"""Zero-argument coroutine function invoked when a timer fires."""


@runtime_checkable
class TimerHandle(Protocol):
    """Handle to a scheduled callback."""

    def cancel(self) -> None:
        """Prevent the callback from running if it has not started yet."""
        ...

    def cancelled(self) -> bool:
        """Return True if cancel() was called."""
        ...


@runtime_checkable
class ClockProtocol(Protocol):
    """
    The scheduler's only source of time and delayed execution.

    Implementations must be substitutable with a deterministic fake in tests.
    Cancellation is allowed to be racy at the firing boundary; the scheduler
    guards every callback with a generation check.
    """

    def now(self) -> float:
        """Current time in seconds on a monotonic scale."""
        ...

    def call_later(self, delay: float, callback: TimerCallback) -> TimerHandle:
        """Run ``callback()`` after ``delay`` seconds on its own task."""
        ...
