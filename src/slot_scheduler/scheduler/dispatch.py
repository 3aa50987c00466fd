# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Fire-and-forget delivery of notifier and board calls.

Transitions collect their side effects in an Outbox while the tenant lock is
held, then hand it to the PortDispatcher. Delivery happens on background
tasks chained one after another, so a tenant's notifications arrive in the
order the transitions were committed while no transition ever waits on a
collaborator.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from ..observability.constants import PORT_FAILURES_TOTAL
from ..observability.protocols import MetricsCollectorProtocol
from ..protocols.board import BoardProtocol
from ..protocols.notifier import NotifierProtocol
from ..types.outcome import NotificationKind
from ..types.slot import SchedulerSnapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notification:
    """A pending notifier call."""

    requester_id: str
    kind: NotificationKind
    details: Mapping[str, Any]


@dataclass
class Outbox:
    """Side effects produced by one transition, in commit order."""

    notifications: list[Notification] = field(default_factory=list)
    snapshot: SchedulerSnapshot | None = None

    def notify(
        self, requester_id: str, kind: NotificationKind, **details: Any
    ) -> None:
        self.notifications.append(Notification(requester_id, kind, details))

    def render(self, snapshot: SchedulerSnapshot) -> None:
        # Only the latest state of a transition is worth drawing
        self.snapshot = snapshot

    def __bool__(self) -> bool:
        return bool(self.notifications) or self.snapshot is not None


class PortDispatcher:
    """
    Delivers a tenant's outboxes to the notifier and board ports.

    Every port call is bounded by ``timeout`` seconds. Exceptions and
    timeouts are logged, counted, and swallowed here; they never reach the
    scheduler.
    """

    def __init__(
        self,
        tenant_id: str,
        notifier: NotifierProtocol | None,
        board: BoardProtocol | None,
        timeout: float,
        metrics: MetricsCollectorProtocol | None = None,
    ) -> None:
        self._tenant_id = tenant_id
        self._notifier = notifier
        self._board = board
        self._timeout = timeout
        self._metrics = metrics

        self._tail: asyncio.Task[None] | None = None
        self._tasks: set[asyncio.Task[None]] = set()

    def submit(self, outbox: Outbox) -> None:
        """Schedule delivery of an outbox after every earlier one."""
        if not outbox:
            return

        task = asyncio.create_task(self._deliver(self._tail, outbox))
        self._tail = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait until every submitted outbox has been delivered."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def _deliver(
        self, previous: asyncio.Task[None] | None, outbox: Outbox
    ) -> None:
        if previous is not None and not previous.done():
            # asyncio.wait never raises the awaited task's exception
            await asyncio.wait({previous})

        if self._notifier is not None:
            for note in outbox.notifications:
                notifier = self._notifier
                await self._call(
                    "notifier",
                    lambda note=note, notifier=notifier: notifier.notify(
                        note.requester_id, note.kind, note.details
                    ),
                    f"{note.kind.value} for {note.requester_id}",
                )

        if self._board is not None and outbox.snapshot is not None:
            board = self._board
            snapshot = outbox.snapshot
            await self._call(
                "board",
                lambda: board.render(self._tenant_id, snapshot),
                f"render generation {snapshot.generation}",
            )

    async def _call(
        self, port: str, call: Callable[[], Awaitable[None]], what: str
    ) -> None:
        try:
            await asyncio.wait_for(call(), timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "%s call timed out after %.1fs (tenant=%s, %s)",
                port,
                self._timeout,
                self._tenant_id,
                what,
            )
            self._record_failure(port)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception(
                "%s call failed (tenant=%s, %s)", port, self._tenant_id, what
            )
            self._record_failure(port)

    def _record_failure(self, port: str) -> None:
        if self._metrics is not None:
            self._metrics.inc_counter(
                PORT_FAILURES_TOTAL, labels={"tenant_id": self._tenant_id, "port": port}
            )
