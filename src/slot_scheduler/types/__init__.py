# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Core types for the slot scheduler.

This module exports the slot records, snapshots and operation results
used across the library.
"""

from .outcome import (
    AccessResult,
    AccessStatus,
    CancelOutcome,
    NotificationKind,
    RequesterRole,
    RequesterStatus,
)
from .slot import (
    ActiveSession,
    PendingRequest,
    Reservation,
    SchedulerSnapshot,
    SlotState,
)

__all__ = [
    "AccessResult",
    "AccessStatus",
    "ActiveSession",
    "CancelOutcome",
    "NotificationKind",
    "PendingRequest",
    "RequesterRole",
    "RequesterStatus",
    "Reservation",
    "SchedulerSnapshot",
    "SlotState",
]
