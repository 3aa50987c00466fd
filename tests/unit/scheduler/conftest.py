"""Shared fixtures for tenant scheduler tests."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import pytest

from slot_scheduler.clock import ManualClock
from slot_scheduler.observability import UnifiedMetricsCollector
from slot_scheduler.scheduler import SchedulerConfig, TenantScheduler
from slot_scheduler.types import NotificationKind, SchedulerSnapshot

TENANT = "guild-1"


class RecordingNotifier:
    """Notifier that records every call in delivery order."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, NotificationKind, dict[str, Any]]] = []

    async def notify(
        self,
        requester_id: str,
        kind: NotificationKind,
        details: Mapping[str, Any],
    ) -> None:
        self.calls.append((requester_id, kind, dict(details)))

    def kinds(self) -> list[tuple[str, NotificationKind]]:
        return [(requester_id, kind) for requester_id, kind, _ in self.calls]

    def for_requester(self, requester_id: str) -> list[NotificationKind]:
        return [kind for rid, kind, _ in self.calls if rid == requester_id]


class RecordingBoard:
    """Board that records every rendered snapshot."""

    def __init__(self) -> None:
        self.snapshots: list[SchedulerSnapshot] = []

    async def render(self, tenant_id: str, snapshot: SchedulerSnapshot) -> None:
        self.snapshots.append(snapshot)


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def board():
    return RecordingBoard()


@pytest.fixture
def metrics():
    return UnifiedMetricsCollector(enable_prometheus=False)


@pytest.fixture
def config():
    return SchedulerConfig()


@pytest.fixture
def scheduler(config, clock, notifier, board, metrics):
    """A scheduler for TENANT driven by a ManualClock."""
    return TenantScheduler(
        TENANT,
        config=config,
        clock=clock,
        notifier=notifier,
        board=board,
        metrics=metrics,
    )
