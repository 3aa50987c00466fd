# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Slot Scheduler - FIFO admission control for exclusive per-tenant resources.

This library serializes access to a resource that only one requester per
tenant may use at a time (for example an OCR pipeline that reads ranking
screenshots posted in a chat guild). Requesters are offered the slot in
arrival order, must confirm within a time window, and are reclaimed if they
hold it too long.

Key Features:
    - One slot and one FIFO queue per tenant, tenants fully independent
    - Time-boxed reservations and sessions enforced by timers
    - Generation stamping so late timers never disturb newer holders
    - Optional settle delay between a finished session and the next turn
    - Fire-and-forget notifier and board ports with ordered delivery
    - Prometheus metrics for grants, expiries, waits and port failures

Quick Start:
    >>> from slot_scheduler import SchedulerRegistry
    >>> from slot_scheduler.adapters import LoggingNotifier
    >>>
    >>> async with SchedulerRegistry(notifier=LoggingNotifier()) as registry:
    ...     scheduler = registry.get_or_create("guild-1")
    ...     result = await scheduler.request_access("alice", "ranking screenshot")
    ...     if result.is_granted:
    ...         async with scheduler.session("alice", settle_delay=5.0):
    ...             await run_ocr()

Main Exports:
    - TenantScheduler, SchedulerRegistry: Core scheduling components
    - SchedulerConfig: Configuration options
    - NotifierProtocol, BoardProtocol, ClockProtocol: Collaborator interfaces
    - AsyncioClock, ManualClock: Time sources

Version: 1.0.0
"""

__version__ = "1.0.0"

from .clock import AsyncioClock, ManualClock
from .exceptions import (
    NotActiveHolderError,
    NotHolderError,
    NotReservationHolderError,
    RequesterNotFoundError,
    ReservationExpiredError,
    SlotSchedulerError,
)
from .observability import UnifiedMetricsCollector, get_metrics_collector
from .protocols import BoardProtocol, ClockProtocol, NotifierProtocol, TimerHandle
from .scheduler import SchedulerConfig, SchedulerRegistry, TenantScheduler
from .types import (
    AccessResult,
    AccessStatus,
    ActiveSession,
    CancelOutcome,
    NotificationKind,
    PendingRequest,
    RequesterRole,
    RequesterStatus,
    Reservation,
    SchedulerSnapshot,
    SlotState,
)

__all__ = [
    "AccessResult",
    "AccessStatus",
    "ActiveSession",
    "AsyncioClock",
    "BoardProtocol",
    "CancelOutcome",
    "ClockProtocol",
    "ManualClock",
    "NotActiveHolderError",
    "NotHolderError",
    "NotReservationHolderError",
    "NotificationKind",
    "NotifierProtocol",
    "PendingRequest",
    "RequesterNotFoundError",
    "RequesterRole",
    "RequesterStatus",
    "Reservation",
    "ReservationExpiredError",
    "SchedulerConfig",
    "SchedulerRegistry",
    "SchedulerSnapshot",
    "SlotSchedulerError",
    "SlotState",
    "TenantScheduler",
    "TimerHandle",
    "UnifiedMetricsCollector",
    "__version__",
    "get_metrics_collector",
]
