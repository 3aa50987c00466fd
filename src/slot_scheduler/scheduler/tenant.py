# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Per-tenant admission scheduler.

A TenantScheduler serializes access to one exclusive resource. Each tenant
has a single slot that is IDLE, RESERVED or ACTIVE, plus a FIFO queue of
waiting requesters:

    IDLE --request_access--> RESERVED --begin_session--> ACTIVE
     ^                          |                           |
     +----- expiry / cancel ----+---- complete / reclaim ---+
                 (the queue head is promoted to RESERVED)

Every reservation and session carries a generation number. Expiry timers
capture the generation they were armed for and do nothing if the slot has
moved on, so a timer that fires while being cancelled is harmless.

All state changes, whether caused by a caller or by a timer, run under one
asyncio.Lock per tenant.
"""

from __future__ import annotations

import asyncio
import contextlib
import functools
import logging
import math
from collections import OrderedDict, deque
from collections.abc import AsyncIterator
from typing import Any, NoReturn

from ..clock.asyncio_clock import AsyncioClock
from ..exceptions import (
    NotActiveHolderError,
    NotReservationHolderError,
    RequesterNotFoundError,
    ReservationExpiredError,
    SlotSchedulerError,
)
from ..observability.collector import get_metrics_collector
from ..observability.constants import (
    ACCESS_REQUESTS_TOTAL,
    QUEUE_DEPTH,
    QUEUE_WAIT_SECONDS,
    REQUESTS_CANCELLED_TOTAL,
    RESERVATIONS_EXPIRED_TOTAL,
    RESERVATIONS_GRANTED_TOTAL,
    SESSION_DURATION_SECONDS,
    SESSIONS_COMPLETED_TOTAL,
    SESSIONS_RECLAIMED_TOTAL,
    SESSIONS_STARTED_TOTAL,
    STALE_TIMERS_TOTAL,
)
from ..observability.protocols import MetricsCollectorProtocol
from ..protocols.board import BoardProtocol
from ..protocols.clock import ClockProtocol, TimerHandle
from ..protocols.notifier import NotifierProtocol
from ..types.outcome import (
    AccessResult,
    CancelOutcome,
    NotificationKind,
    RequesterRole,
    RequesterStatus,
)
from ..types.slot import ActiveSession, PendingRequest, Reservation, SchedulerSnapshot
from .config import SchedulerConfig
from .dispatch import Outbox, PortDispatcher

logger = logging.getLogger(__name__)


class TenantScheduler:
    """
    FIFO admission scheduler for one tenant's exclusive resource.

    Requesters call request_access() and are either offered the slot as a
    Reservation or appended to the queue. A reservation holder confirms with
    begin_session() within ``reservation_ttl``; the resulting session must be
    released with complete_session() within ``active_ttl``. Missed deadlines
    are enforced by timers and always hand the slot to the next requester.

    Example:
        >>> scheduler = TenantScheduler("guild-1", notifier=my_notifier)
        >>> result = await scheduler.request_access("alice", "ranking screenshot")
        >>> if result.is_granted:
        ...     async with scheduler.session("alice"):
        ...         await run_ocr()
    """

    def __init__(
        self,
        tenant_id: str,
        config: SchedulerConfig | None = None,
        clock: ClockProtocol | None = None,
        notifier: NotifierProtocol | None = None,
        board: BoardProtocol | None = None,
        metrics: MetricsCollectorProtocol | None = None,
    ) -> None:
        """
        Initialize the tenant scheduler.

        Args:
            tenant_id: Identifier of the tenant this scheduler serves
            config: TTLs and delivery settings (defaults to SchedulerConfig())
            clock: Time source (defaults to AsyncioClock())
            notifier: Port used to tell requesters about grants and expiries
            board: Port re-rendered after every transition
            metrics: Metrics collector (defaults to the global collector)
        """
        self.tenant_id = tenant_id
        self.config = config or SchedulerConfig()
        self._clock = clock or AsyncioClock()

        if not self.config.metrics_enabled:
            metrics = None
        elif metrics is None:
            metrics = get_metrics_collector()
        self._metrics = metrics
        self._labels = {"tenant_id": tenant_id}

        self._dispatcher = PortDispatcher(
            tenant_id,
            notifier,
            board,
            timeout=self.config.port_timeout,
            metrics=metrics,
        )

        self._lock = asyncio.Lock()

        # Slot: at most one of these is set
        self._reservation: Reservation | None = None
        self._active: ActiveSession | None = None
        self._slot_timer: TimerHandle | None = None

        self._queue: deque[PendingRequest] = deque()
        self._sequence = 0
        self._generation = 0

        # Deferred hand-off after a clean completion with a settle delay
        self._handoff_pending = False
        self._settle_timer: TimerHandle | None = None

        # requester_id -> generation of a reservation that lapsed unconfirmed
        self._lapsed: OrderedDict[str, int] = OrderedDict()

        self._closed = False

    def __repr__(self) -> str:
        return (
            f"TenantScheduler(tenant_id={self.tenant_id!r}, "
            f"generation={self._generation}, queue_depth={len(self._queue)})"
        )

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def request_access(
        self, requester_id: str, job_label: str = ""
    ) -> AccessResult:
        """
        Ask for the tenant's slot.

        Idempotent: a requester that already holds the slot gets GRANTED
        again, and a requester that is already queued keeps its position.

        Args:
            requester_id: Identifier of the requester
            job_label: Free-form description of the job (shown on boards)

        Returns:
            AccessResult with GRANTED and the slot generation, or QUEUED and
            the 1-based queue position
        """
        async with self._lock:
            self._ensure_open()

            held = self._held_by_locked(requester_id)
            if held is not None:
                logger.debug(
                    "Requester %s already holds tenant %s (%s)",
                    requester_id,
                    self.tenant_id,
                    held.role.value,
                )
                self._count(ACCESS_REQUESTS_TOTAL, outcome="already_granted")
                return held

            position = self._position_locked(requester_id)
            if position is not None:
                self._count(ACCESS_REQUESTS_TOTAL, outcome="already_queued")
                return AccessResult.queued(position)

            # A fresh request supersedes any lapsed turn
            self._lapsed.pop(requester_id, None)

            outbox = Outbox()
            if self._slot_free_locked():
                reservation = self._grant_locked(
                    requester_id, job_label, outbox, after_wait=False
                )
                self._count(ACCESS_REQUESTS_TOTAL, outcome="granted")
                result = AccessResult.granted(reservation.generation)
            else:
                self._sequence += 1
                self._queue.append(
                    PendingRequest(
                        requester_id=requester_id,
                        job_label=job_label,
                        enqueued_at=self._sequence,
                        queued_since=self._clock.now(),
                    )
                )
                logger.info(
                    "Queued %s in tenant %s at position %d",
                    requester_id,
                    self.tenant_id,
                    len(self._queue),
                )
                self._count(ACCESS_REQUESTS_TOTAL, outcome="queued")
                result = AccessResult.queued(len(self._queue))

            self._commit_locked(outbox)
            return result

    async def begin_session(
        self, requester_id: str, generation: int | None = None
    ) -> ActiveSession:
        """
        Confirm a reservation and start using the resource.

        Args:
            requester_id: Identifier of the reservation holder
            generation: Optional generation from the grant; a mismatch means
                the caller is acting on an old turn

        Returns:
            The new ActiveSession

        Raises:
            ReservationExpiredError: The caller's reservation already lapsed
            NotReservationHolderError: The caller does not hold the reservation
        """
        async with self._lock:
            self._ensure_open()

            reservation = self._reservation
            if reservation is None or reservation.requester_id != requester_id:
                self._raise_not_reservation_holder_locked(requester_id)

            if generation is not None and generation != reservation.generation:
                raise ReservationExpiredError(
                    f"Reservation generation {generation} is no longer current "
                    f"for {requester_id!r} in tenant {self.tenant_id!r}",
                    tenant_id=self.tenant_id,
                    requester_id=requester_id,
                    holder_id=requester_id,
                    generation=generation,
                )

            self._cancel_slot_timer_locked()
            self._reservation = None

            now = self._clock.now()
            self._generation += 1
            session = ActiveSession(
                requester_id=requester_id,
                job_label=reservation.job_label,
                expires_at=now + self.config.active_ttl,
                generation=self._generation,
                started_at=now,
            )
            self._active = session
            self._slot_timer = self._clock.call_later(
                self.config.active_ttl,
                functools.partial(self._reclaim_session, session.generation),
            )

            logger.info(
                "Session started for %s in tenant %s (generation=%d, ttl=%.0fs)",
                requester_id,
                self.tenant_id,
                session.generation,
                self.config.active_ttl,
            )
            self._count(SESSIONS_STARTED_TOTAL)
            self._commit_locked(Outbox())
            return session

    async def complete_session(
        self, requester_id: str, settle_delay: float | None = None
    ) -> None:
        """
        Release the slot after a finished job.

        The slot becomes idle immediately. When the settle delay is positive,
        the next queued requester is only offered the slot once the delay
        elapses; requesters arriving meanwhile join the queue.

        Args:
            requester_id: Identifier of the active holder
            settle_delay: Seconds to defer the hand-off (defaults to
                config.default_settle_delay)

        Raises:
            NotActiveHolderError: The caller does not hold the active session
            ValueError: settle_delay is negative or not finite
        """
        delay = (
            self.config.default_settle_delay if settle_delay is None else settle_delay
        )
        if not math.isfinite(delay) or delay < 0:
            raise ValueError("settle_delay must be a finite, non-negative number")

        async with self._lock:
            self._ensure_open()

            active = self._active
            if active is None or active.requester_id != requester_id:
                raise NotActiveHolderError(
                    f"{requester_id!r} does not hold the active session "
                    f"in tenant {self.tenant_id!r}",
                    tenant_id=self.tenant_id,
                    requester_id=requester_id,
                    holder_id=active.requester_id if active else None,
                )

            outbox = Outbox()
            self._release_session_locked(active, outbox, delay)
            self._commit_locked(outbox)

    async def cancel_request(self, requester_id: str) -> CancelOutcome:
        """
        Withdraw a requester from wherever it sits.

        - Queued: removed from the queue.
        - Reservation holder: the reservation is dropped and the next
          requester is offered the slot immediately.
        - Active holder: same as complete_session() with no settle delay.

        Returns:
            What was withdrawn

        Raises:
            RequesterNotFoundError: The requester has no state in this tenant
        """
        async with self._lock:
            self._ensure_open()
            outbox = Outbox()

            active = self._active
            reservation = self._reservation
            if active is not None and active.requester_id == requester_id:
                self._release_session_locked(active, outbox, 0.0)
                self._count(REQUESTS_CANCELLED_TOTAL, role="active")
                outcome = CancelOutcome.SESSION_RELEASED
            elif reservation is not None and reservation.requester_id == requester_id:
                self._cancel_slot_timer_locked()
                self._reservation = None
                logger.info(
                    "Reservation withdrawn by %s in tenant %s",
                    requester_id,
                    self.tenant_id,
                )
                self._handoff_locked(outbox)
                self._count(REQUESTS_CANCELLED_TOTAL, role="reserved")
                outcome = CancelOutcome.RESERVATION_RELEASED
            else:
                index = self._index_locked(requester_id)
                if index is None:
                    raise RequesterNotFoundError(self.tenant_id, requester_id)
                del self._queue[index]
                logger.info(
                    "Removed %s from the queue of tenant %s",
                    requester_id,
                    self.tenant_id,
                )
                self._announce_positions_locked(outbox, start=index)
                self._count(REQUESTS_CANCELLED_TOTAL, role="queued")
                outcome = CancelOutcome.DEQUEUED

            self._commit_locked(outbox)
            return outcome

    @contextlib.asynccontextmanager
    async def session(
        self, requester_id: str, settle_delay: float | None = None
    ) -> AsyncIterator[ActiveSession]:
        """
        Run a block as the active holder.

        Calls begin_session() on entry and complete_session() on exit. If the
        block raises, the session is still released and the original
        exception propagates.

        Example:
            >>> async with scheduler.session("alice", settle_delay=5.0) as active:
            ...     await pipeline.process(active.job_label)
        """
        active = await self.begin_session(requester_id)
        try:
            yield active
        except BaseException:
            with contextlib.suppress(NotActiveHolderError):
                await self.complete_session(requester_id, settle_delay=settle_delay)
            raise
        await self.complete_session(requester_id, settle_delay=settle_delay)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def snapshot(self) -> SchedulerSnapshot:
        """Return a consistent read-only view of this tenant."""
        async with self._lock:
            return self._snapshot_locked()

    async def status(self, requester_id: str) -> RequesterStatus:
        """Return where a requester currently stands in this tenant."""
        async with self._lock:
            if self._active is not None and self._active.requester_id == requester_id:
                return RequesterStatus(
                    role=RequesterRole.ACTIVE,
                    expires_at=self._active.expires_at,
                    generation=self._active.generation,
                )
            if (
                self._reservation is not None
                and self._reservation.requester_id == requester_id
            ):
                return RequesterStatus(
                    role=RequesterRole.RESERVED,
                    expires_at=self._reservation.expires_at,
                    generation=self._reservation.generation,
                )
            position = self._position_locked(requester_id)
            if position is not None:
                return RequesterStatus(role=RequesterRole.QUEUED, position=position)
            return RequesterStatus(role=RequesterRole.NONE)

    async def queue_position(self, requester_id: str) -> int | None:
        """Return the 1-based queue position of a requester, or None."""
        async with self._lock:
            return self._position_locked(requester_id)

    @property
    def is_closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def drain(self) -> None:
        """Wait for every pending notifier/board delivery to finish."""
        await self._dispatcher.drain()

    async def aclose(self) -> None:
        """
        Stop the scheduler.

        Cancels all timers and waits for pending deliveries. A timer callback
        that fired before the close does nothing. State is kept for
        inspection, but further operations raise SlotSchedulerError.
        """
        async with self._lock:
            if self._closed:
                return
            self._closed = True
            self._cancel_slot_timer_locked()
            if self._settle_timer is not None:
                self._settle_timer.cancel()
                self._settle_timer = None
        await self._dispatcher.drain()
        logger.debug("TenantScheduler %s closed", self.tenant_id)

    # ------------------------------------------------------------------
    # Timer callbacks
    # ------------------------------------------------------------------

    async def _expire_reservation(self, generation: int) -> None:
        async with self._lock:
            reservation = self._reservation
            if (
                self._closed
                or reservation is None
                or reservation.generation != generation
            ):
                self._stale_timer_locked("reservation", generation)
                return

            self._slot_timer = None
            self._reservation = None
            self._remember_lapsed_locked(reservation)

            logger.info(
                "Reservation for %s in tenant %s lapsed (generation=%d)",
                reservation.requester_id,
                self.tenant_id,
                generation,
            )
            self._count(RESERVATIONS_EXPIRED_TOTAL)

            outbox = Outbox()
            outbox.notify(
                reservation.requester_id,
                NotificationKind.RESERVATION_EXPIRED,
                tenant_id=self.tenant_id,
                job_label=reservation.job_label,
                generation=generation,
            )
            self._handoff_locked(outbox)
            self._commit_locked(outbox)

    async def _reclaim_session(self, generation: int) -> None:
        async with self._lock:
            active = self._active
            if self._closed or active is None or active.generation != generation:
                self._stale_timer_locked("active", generation)
                return

            self._slot_timer = None
            self._active = None
            elapsed = self._clock.now() - active.started_at
            self._observe(SESSION_DURATION_SECONDS, elapsed)

            logger.info(
                "Session of %s in tenant %s reclaimed after %.0fs (generation=%d)",
                active.requester_id,
                self.tenant_id,
                elapsed,
                generation,
            )
            self._count(SESSIONS_RECLAIMED_TOTAL)

            outbox = Outbox()
            outbox.notify(
                active.requester_id,
                NotificationKind.SESSION_RECLAIMED,
                tenant_id=self.tenant_id,
                job_label=active.job_label,
                generation=generation,
            )
            # Forced reclaim is not a clean finish: no settle delay
            self._handoff_locked(outbox)
            self._commit_locked(outbox)

    async def _finish_settle(self, generation: int) -> None:
        async with self._lock:
            if (
                self._closed
                or not self._handoff_pending
                or generation != self._generation
            ):
                self._stale_timer_locked("settle", generation)
                return

            self._settle_timer = None
            self._handoff_pending = False

            outbox = Outbox()
            self._handoff_locked(outbox)
            self._commit_locked(outbox)

    # ------------------------------------------------------------------
    # Internals (caller holds self._lock)
    # ------------------------------------------------------------------

    def _ensure_open(self) -> None:
        if self._closed:
            raise SlotSchedulerError(f"Scheduler for tenant {self.tenant_id!r} is closed")

    def _slot_free_locked(self) -> bool:
        return (
            self._reservation is None
            and self._active is None
            and not self._handoff_pending
        )

    def _held_by_locked(self, requester_id: str) -> AccessResult | None:
        if self._active is not None and self._active.requester_id == requester_id:
            return AccessResult.granted(self._active.generation, RequesterRole.ACTIVE)
        if (
            self._reservation is not None
            and self._reservation.requester_id == requester_id
        ):
            return AccessResult.granted(
                self._reservation.generation, RequesterRole.RESERVED
            )
        return None

    def _index_locked(self, requester_id: str) -> int | None:
        for index, pending in enumerate(self._queue):
            if pending.requester_id == requester_id:
                return index
        return None

    def _position_locked(self, requester_id: str) -> int | None:
        index = self._index_locked(requester_id)
        return None if index is None else index + 1

    def _grant_locked(
        self,
        requester_id: str,
        job_label: str,
        outbox: Outbox,
        after_wait: bool,
        queued_since: float | None = None,
    ) -> Reservation:
        now = self._clock.now()
        ttl = self.config.reservation_ttl
        self._generation += 1
        reservation = Reservation(
            requester_id=requester_id,
            job_label=job_label,
            expires_at=now + ttl,
            generation=self._generation,
            granted_at=now,
        )
        self._reservation = reservation
        self._slot_timer = self._clock.call_later(
            ttl, functools.partial(self._expire_reservation, reservation.generation)
        )

        kind = (
            NotificationKind.SESSION_GRANTED_AFTER_WAIT
            if after_wait
            else NotificationKind.RESERVATION_GRANTED
        )
        outbox.notify(
            requester_id,
            kind,
            tenant_id=self.tenant_id,
            job_label=job_label,
            generation=reservation.generation,
            expires_at=reservation.expires_at,
            ttl=ttl,
        )

        logger.info(
            "Reserved tenant %s for %s (generation=%d, %s, confirm within %.0fs)",
            self.tenant_id,
            requester_id,
            reservation.generation,
            "from queue" if after_wait else "immediate",
            ttl,
        )
        self._count(
            RESERVATIONS_GRANTED_TOTAL, path="handoff" if after_wait else "immediate"
        )
        if queued_since is not None:
            self._observe(QUEUE_WAIT_SECONDS, now - queued_since)
        return reservation

    def _handoff_locked(self, outbox: Outbox) -> None:
        """Offer the slot to the queue head, if any."""
        if not self._queue:
            logger.debug("Tenant %s is idle", self.tenant_id)
            return

        pending = self._queue.popleft()
        self._grant_locked(
            pending.requester_id,
            pending.job_label,
            outbox,
            after_wait=True,
            queued_since=pending.queued_since,
        )
        self._announce_positions_locked(outbox, start=0)

    def _release_session_locked(
        self, active: ActiveSession, outbox: Outbox, settle_delay: float
    ) -> None:
        self._cancel_slot_timer_locked()
        self._active = None
        self._observe(SESSION_DURATION_SECONDS, self._clock.now() - active.started_at)
        self._count(SESSIONS_COMPLETED_TOTAL)

        if settle_delay > 0:
            self._handoff_pending = True
            self._settle_timer = self._clock.call_later(
                settle_delay, functools.partial(self._finish_settle, self._generation)
            )
            logger.info(
                "Session of %s in tenant %s completed; hand-off in %.1fs",
                active.requester_id,
                self.tenant_id,
                settle_delay,
            )
        else:
            logger.info(
                "Session of %s in tenant %s completed",
                active.requester_id,
                self.tenant_id,
            )
            self._handoff_locked(outbox)

    def _announce_positions_locked(self, outbox: Outbox, start: int) -> None:
        if not self.config.notify_queue_position:
            return
        for index in range(start, len(self._queue)):
            pending = self._queue[index]
            outbox.notify(
                pending.requester_id,
                NotificationKind.QUEUE_POSITION_CHANGED,
                tenant_id=self.tenant_id,
                job_label=pending.job_label,
                position=index + 1,
            )

    def _raise_not_reservation_holder_locked(self, requester_id: str) -> NoReturn:
        holder_id = self._reservation.requester_id if self._reservation else None
        lapsed_generation = self._lapsed.get(requester_id)
        if lapsed_generation is not None:
            raise ReservationExpiredError(
                f"Reservation of {requester_id!r} in tenant {self.tenant_id!r} "
                f"expired (generation {lapsed_generation})",
                tenant_id=self.tenant_id,
                requester_id=requester_id,
                holder_id=holder_id,
                generation=lapsed_generation,
            )
        raise NotReservationHolderError(
            f"{requester_id!r} does not hold the reservation "
            f"in tenant {self.tenant_id!r}",
            tenant_id=self.tenant_id,
            requester_id=requester_id,
            holder_id=holder_id,
        )

    def _remember_lapsed_locked(self, reservation: Reservation) -> None:
        self._lapsed.pop(reservation.requester_id, None)
        self._lapsed[reservation.requester_id] = reservation.generation
        while len(self._lapsed) > self.config.lapsed_history_size:
            self._lapsed.popitem(last=False)

    def _cancel_slot_timer_locked(self) -> None:
        if self._slot_timer is not None:
            self._slot_timer.cancel()
            self._slot_timer = None

    def _stale_timer_locked(self, kind: str, generation: int) -> None:
        logger.debug(
            "Ignoring stale %s timer for tenant %s (timer generation=%d, current=%d)",
            kind,
            self.tenant_id,
            generation,
            self._generation,
        )
        self._count(STALE_TIMERS_TOTAL, kind=kind)

    def _snapshot_locked(self) -> SchedulerSnapshot:
        return SchedulerSnapshot(
            tenant_id=self.tenant_id,
            reservation=self._reservation,
            active=self._active,
            queue=tuple(self._queue),
            generation=self._generation,
            handoff_pending=self._handoff_pending,
            taken_at=self._clock.now(),
        )

    def _commit_locked(self, outbox: Outbox) -> None:
        """Publish a committed transition to the board and the notifier."""
        outbox.render(self._snapshot_locked())
        if self._metrics is not None:
            self._metrics.set_gauge(QUEUE_DEPTH, len(self._queue), labels=self._labels)
        self._dispatcher.submit(outbox)

    def _count(self, name: str, **labels: Any) -> None:
        if self._metrics is not None:
            self._metrics.inc_counter(name, labels={**self._labels, **labels})

    def _observe(self, name: str, value: float) -> None:
        if self._metrics is not None:
            self._metrics.observe_histogram(name, value, labels=self._labels)


__all__ = ["TenantScheduler"]
