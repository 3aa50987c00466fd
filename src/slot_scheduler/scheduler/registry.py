# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Registry of per-tenant schedulers.

Tenants are fully independent capacity domains, so the registry owns no
cross-tenant state: it only creates one TenantScheduler per tenant on first
reference and hands the same instance back afterwards.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterator, MutableMapping
from typing import Any

from typing_extensions import Self

from ..clock.asyncio_clock import AsyncioClock
from ..observability.collector import get_metrics_collector
from ..observability.protocols import MetricsCollectorProtocol
from ..protocols.board import BoardProtocol
from ..protocols.clock import ClockProtocol
from ..protocols.notifier import NotifierProtocol
from ..types.slot import SchedulerSnapshot
from .config import SchedulerConfig
from .tenant import TenantScheduler

logger = logging.getLogger(__name__)


class SchedulerRegistry:
    """
    Maps tenant identifiers to lazily-created TenantScheduler instances.

    Every scheduler created by a registry shares its config, clock, ports and
    metrics collector. The backing storage is injectable so tests (or hosts
    that want weak references) can supply their own mapping.

    Example:
        >>> async with SchedulerRegistry(notifier=discord_notifier) as registry:
        ...     scheduler = registry.get_or_create("guild-1")
        ...     result = await scheduler.request_access("alice")
    """

    def __init__(
        self,
        config: SchedulerConfig | None = None,
        clock: ClockProtocol | None = None,
        notifier: NotifierProtocol | None = None,
        board: BoardProtocol | None = None,
        metrics: MetricsCollectorProtocol | None = None,
        storage: MutableMapping[str, TenantScheduler] | None = None,
    ) -> None:
        """
        Initialize the registry.

        Args:
            config: Configuration applied to every tenant
            clock: Shared time source (defaults to AsyncioClock())
            notifier: Shared notifier port
            board: Shared board port
            metrics: Shared metrics collector (defaults to the global collector)
            storage: Mapping used to hold schedulers (defaults to a new dict)
        """
        self.config = config or SchedulerConfig()
        self._clock = clock or AsyncioClock()
        self._notifier = notifier
        self._board = board
        if metrics is None and self.config.metrics_enabled:
            metrics = get_metrics_collector()
        self._metrics = metrics
        self._schedulers: MutableMapping[str, TenantScheduler] = (
            storage if storage is not None else {}
        )

    def get_or_create(self, tenant_id: str) -> TenantScheduler:
        """
        Return the scheduler for a tenant, creating it on first reference.

        Runs without awaiting, so two coroutines asking for the same tenant
        always receive the same instance.
        """
        scheduler = self._schedulers.get(tenant_id)
        if scheduler is None:
            scheduler = TenantScheduler(
                tenant_id,
                config=self.config,
                clock=self._clock,
                notifier=self._notifier,
                board=self._board,
                metrics=self._metrics,
            )
            self._schedulers[tenant_id] = scheduler
            logger.debug("Created scheduler for tenant %s", tenant_id)
        return scheduler

    def get(self, tenant_id: str) -> TenantScheduler | None:
        """Return the scheduler for a tenant without creating it."""
        return self._schedulers.get(tenant_id)

    def tenant_ids(self) -> list[str]:
        return list(self._schedulers)

    def __contains__(self, tenant_id: object) -> bool:
        return tenant_id in self._schedulers

    def __len__(self) -> int:
        return len(self._schedulers)

    def __iter__(self) -> Iterator[TenantScheduler]:
        return iter(list(self._schedulers.values()))

    async def snapshot_all(self) -> dict[str, SchedulerSnapshot]:
        """Return a snapshot of every known tenant."""
        return {
            scheduler.tenant_id: await scheduler.snapshot() for scheduler in self
        }

    def get_metrics(self) -> dict[str, Any]:
        """Return the metrics collector snapshot (empty when metrics are off)."""
        if self._metrics is None:
            return {"counters": {}, "gauges": {}, "histograms": {}}
        return self._metrics.get_metrics()

    async def drain(self) -> None:
        """Wait for pending notifier/board deliveries of every tenant."""
        await asyncio.gather(*(scheduler.drain() for scheduler in self))

    async def aclose(self) -> None:
        """Close every tenant scheduler, cancelling all timers."""
        await asyncio.gather(*(scheduler.aclose() for scheduler in self))
        logger.debug("SchedulerRegistry closed (%d tenants)", len(self))

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


__all__ = ["SchedulerRegistry"]
