# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Result types returned by the tenant scheduler operations.
"""

from dataclasses import dataclass
from enum import Enum


class AccessStatus(Enum):
    """Outcome of request_access()."""

    GRANTED = "granted"
    QUEUED = "queued"


class CancelOutcome(Enum):
    """What cancel_request() withdrew."""

    DEQUEUED = "dequeued"
    RESERVATION_RELEASED = "reservation_released"
    SESSION_RELEASED = "session_released"


class RequesterRole(Enum):
    """Where a requester currently sits within a tenant."""

    NONE = "none"
    QUEUED = "queued"
    RESERVED = "reserved"
    ACTIVE = "active"


class NotificationKind(Enum):
    """Kinds of messages delivered through the notifier port.

    QUEUE_POSITION_CHANGED is only sent when
    SchedulerConfig.notify_queue_position is enabled.
    """

    RESERVATION_GRANTED = "reservation_granted"
    SESSION_GRANTED_AFTER_WAIT = "session_granted_after_wait"
    RESERVATION_EXPIRED = "reservation_expired"
    SESSION_RECLAIMED = "session_reclaimed"
    QUEUE_POSITION_CHANGED = "queue_position_changed"


@dataclass(frozen=True)
class AccessResult:
    """
    Result of request_access().

    Attributes:
        status: GRANTED when the requester holds the slot, QUEUED otherwise
        generation: Generation of the held reservation or session (GRANTED only)
        position: 1-based queue position (QUEUED only)
        role: Whether the grant is a reservation or an active session
    """

    status: AccessStatus
    generation: int | None = None
    position: int | None = None
    role: RequesterRole = RequesterRole.NONE

    @classmethod
    def granted(
        cls, generation: int, role: RequesterRole = RequesterRole.RESERVED
    ) -> "AccessResult":
        return cls(status=AccessStatus.GRANTED, generation=generation, role=role)

    @classmethod
    def queued(cls, position: int) -> "AccessResult":
        return cls(
            status=AccessStatus.QUEUED, position=position, role=RequesterRole.QUEUED
        )

    @property
    def is_granted(self) -> bool:
        return self.status is AccessStatus.GRANTED


@dataclass(frozen=True)
class RequesterStatus:
    """
    Current standing of a requester within a tenant.

    Attributes:
        role: NONE, QUEUED, RESERVED or ACTIVE
        position: 1-based queue position when QUEUED
        expires_at: Deadline of the held reservation or session
        generation: Generation of the held reservation or session
    """

    role: RequesterRole
    position: int | None = None
    expires_at: float | None = None
    generation: int | None = None


__all__ = [
    "AccessResult",
    "AccessStatus",
    "CancelOutcome",
    "NotificationKind",
    "RequesterRole",
    "RequesterStatus",
]
