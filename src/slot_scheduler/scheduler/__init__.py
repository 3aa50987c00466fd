# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Admission scheduling for exclusive per-tenant resources.

This module provides:
- SchedulerConfig: TTLs and delivery settings
- TenantScheduler: FIFO reservation/session state machine for one tenant
- SchedulerRegistry: Lazily-created scheduler per tenant
- Outbox, PortDispatcher: Ordered fire-and-forget delivery to ports
"""

from .config import SchedulerConfig
from .dispatch import Notification, Outbox, PortDispatcher
from .registry import SchedulerRegistry
from .tenant import TenantScheduler

__all__ = [
    "Notification",
    "Outbox",
    "PortDispatcher",
    "SchedulerConfig",
    "SchedulerRegistry",
    "TenantScheduler",
]
