# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Ready-made notifier and board adapters.

Exports:
    NullNotifier: Drops notifications
    LoggingNotifier: Logs notifications
    LoggingBoard: Logs a text rendering of every snapshot
    InMemoryBoard: Keeps the latest snapshot per tenant
    format_snapshot: Plain-text queue board rendering
"""

from .log import LoggingBoard, LoggingNotifier, format_snapshot
from .memory import InMemoryBoard, NullNotifier

__all__ = [
    "InMemoryBoard",
    "LoggingBoard",
    "LoggingNotifier",
    "NullNotifier",
    "format_snapshot",
]
