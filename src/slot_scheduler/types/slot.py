# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Slot types for the tenant scheduler.

This module defines the immutable records that describe a tenant's single
unit of capacity (the slot) and the requesters waiting for it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class SlotState(Enum):
    """Occupancy of a tenant's slot.

    - IDLE: Nobody holds the slot.
    - RESERVED: A requester was offered the slot and must confirm it.
    - ACTIVE: A requester confirmed and is using the resource.
    """

    IDLE = "idle"
    RESERVED = "reserved"
    ACTIVE = "active"


@dataclass(frozen=True)
class PendingRequest:
    """
    A requester waiting in a tenant's FIFO queue.

    Attributes:
        requester_id: Identifier of the waiting requester
        job_label: Free-form label describing the job to run
        enqueued_at: Per-tenant sequence number; the queue ordering key
        queued_since: Clock time the request was enqueued (metrics only)
    """

    requester_id: str
    job_label: str
    enqueued_at: int
    queued_since: float = 0.0


@dataclass(frozen=True)
class Reservation:
    """
    A time-boxed offer of the slot that the holder must confirm.

    Attributes:
        requester_id: Holder of the reservation
        job_label: Label carried over from the original request
        expires_at: Clock time at which the offer lapses
        generation: Slot generation stamped at creation
        granted_at: Clock time the reservation was created
    """

    requester_id: str
    job_label: str
    expires_at: float
    generation: int
    granted_at: float = 0.0


@dataclass(frozen=True)
class ActiveSession:
    """
    Confirmed, in-progress use of the slot.

    Attributes:
        requester_id: Holder of the session
        job_label: Label carried over from the reservation
        expires_at: Clock time at which the session is reclaimed
        generation: Slot generation stamped at creation
        started_at: Clock time the session began
    """

    requester_id: str
    job_label: str
    expires_at: float
    generation: int
    started_at: float = 0.0


@dataclass(frozen=True)
class SchedulerSnapshot:
    """
    Read-only view of one tenant's scheduler state.

    Passed to board renderers after every transition and returned by
    TenantScheduler.snapshot(). Holding a snapshot never blocks the scheduler.
    """

    tenant_id: str
    reservation: Reservation | None = None
    active: ActiveSession | None = None
    queue: tuple[PendingRequest, ...] = field(default_factory=tuple)
    generation: int = 0
    handoff_pending: bool = False
    taken_at: float = 0.0

    @property
    def state(self) -> SlotState:
        if self.active is not None:
            return SlotState.ACTIVE
        if self.reservation is not None:
            return SlotState.RESERVED
        return SlotState.IDLE

    @property
    def holder_id(self) -> str | None:
        """Requester currently holding the slot, reserved or active."""
        if self.active is not None:
            return self.active.requester_id
        if self.reservation is not None:
            return self.reservation.requester_id
        return None

    @property
    def queue_depth(self) -> int:
        return len(self.queue)

    def position_of(self, requester_id: str) -> int | None:
        """Return the 1-based queue position of a requester, or None."""
        for index, pending in enumerate(self.queue, start=1):
            if pending.requester_id == requester_id:
                return index
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert the snapshot to a JSON-serializable dict."""
        return {
            "tenant_id": self.tenant_id,
            "state": self.state.value,
            "generation": self.generation,
            "handoff_pending": self.handoff_pending,
            "taken_at": self.taken_at,
            "reservation": (
                {
                    "requester_id": self.reservation.requester_id,
                    "job_label": self.reservation.job_label,
                    "expires_at": self.reservation.expires_at,
                    "generation": self.reservation.generation,
                }
                if self.reservation
                else None
            ),
            "active": (
                {
                    "requester_id": self.active.requester_id,
                    "job_label": self.active.job_label,
                    "expires_at": self.active.expires_at,
                    "generation": self.active.generation,
                }
                if self.active
                else None
            ),
            "queue": [
                {
                    "requester_id": pending.requester_id,
                    "job_label": pending.job_label,
                    "enqueued_at": pending.enqueued_at,
                }
                for pending in self.queue
            ],
        }


__all__ = [
    "ActiveSession",
    "PendingRequest",
    "Reservation",
    "SchedulerSnapshot",
    "SlotState",
]
