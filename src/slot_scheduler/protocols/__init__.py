# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Protocol definitions for slot scheduler collaborators.

Available protocols:
- ClockProtocol: Source of time and cancellable delayed callbacks
- TimerHandle: Handle returned by ClockProtocol.call_later
- NotifierProtocol: Delivers grant/expiry messages to requesters
- BoardProtocol: Re-renders a presentation of scheduler state
"""

from .board import BoardProtocol
from .clock import ClockProtocol, TimerCallback, TimerHandle
from .notifier import NotifierProtocol

__all__ = [
    "BoardProtocol",
    "ClockProtocol",
    "NotifierProtocol",
    "TimerCallback",
    "TimerHandle",
]
