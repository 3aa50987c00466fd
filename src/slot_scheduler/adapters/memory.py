# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
In-memory port adapters.

Useful for single-process hosts that poll scheduler state, and for tests.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..types.outcome import NotificationKind
from ..types.slot import SchedulerSnapshot


class NullNotifier:
    """Notifier that drops every notification."""

    async def notify(
        self,
        requester_id: str,
        kind: NotificationKind,
        details: Mapping[str, Any],
    ) -> None:
        return None


class InMemoryBoard:
    """
    Board that keeps the latest snapshot of each tenant.

    Attributes:
        renders: Number of render calls received per tenant
    """

    def __init__(self) -> None:
        self._latest: dict[str, SchedulerSnapshot] = {}
        self.renders: dict[str, int] = {}

    async def render(self, tenant_id: str, snapshot: SchedulerSnapshot) -> None:
        current = self._latest.get(tenant_id)
        # Deliveries are ordered, but never let an older view replace a newer one
        if current is None or snapshot.taken_at >= current.taken_at:
            self._latest[tenant_id] = snapshot
        self.renders[tenant_id] = self.renders.get(tenant_id, 0) + 1

    def latest(self, tenant_id: str) -> SchedulerSnapshot | None:
        return self._latest.get(tenant_id)

    def tenants(self) -> list[str]:
        return list(self._latest)


__all__ = ["InMemoryBoard", "NullNotifier"]
