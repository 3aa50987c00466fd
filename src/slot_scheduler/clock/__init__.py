# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Clock implementations for the slot scheduler.

Exports:
    AsyncioClock: Production clock backed by the running event loop
    ManualClock: Deterministic clock advanced explicitly (tests, simulations)
"""

from .asyncio_clock import AsyncioClock, AsyncioTimer
from .manual import ManualClock, ManualTimer

__all__ = ["AsyncioClock", "AsyncioTimer", "ManualClock", "ManualTimer"]
