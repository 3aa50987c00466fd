# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Exception classes for the slot scheduler library.

All exceptions inherit from SlotSchedulerError, making it easy to catch
every scheduler-related error with a single except clause.

Timer-driven expiries are not errors and never raise; they are ordinary
state transitions. Idempotent re-requests are not errors either and return
the requester's current status instead.
"""


class SlotSchedulerError(Exception):
    """Base exception for all slot scheduler errors.

    Example:
        try:
            await scheduler.begin_session("user-1")
        except SlotSchedulerError as e:
            logger.warning(f"Could not start OCR session: {e}")
    """

    pass


class RequesterNotFoundError(SlotSchedulerError):
    """Raised when an operation references a requester with no state.

    This is a benign condition: the scheduler state is left untouched. It is
    typically seen when a requester cancels after its turn already lapsed.

    Attributes:
        tenant_id: The tenant the lookup was scoped to.
        requester_id: The requester that was not found.
    """

    def __init__(self, tenant_id: str, requester_id: str):
        super().__init__(
            f"Requester {requester_id!r} has no queued request, reservation "
            f"or session in tenant {tenant_id!r}"
        )
        self.tenant_id = tenant_id
        self.requester_id = requester_id


class NotHolderError(SlotSchedulerError):
    """Raised when a caller acts on a slot it does not hold.

    Surfaced to the caller as a rejected operation. It is never retried by
    the scheduler.

    Attributes:
        tenant_id: The tenant whose slot was targeted.
        requester_id: The requester that attempted the operation.
        holder_id: The current holder of the targeted slot, if any.
    """

    def __init__(
        self,
        message: str,
        tenant_id: str,
        requester_id: str,
        holder_id: str | None = None,
    ):
        super().__init__(message)
        self.tenant_id = tenant_id
        self.requester_id = requester_id
        self.holder_id = holder_id


class NotReservationHolderError(NotHolderError):
    """Raised when someone other than the reservation holder begins a session."""

    pass


class ReservationExpiredError(NotReservationHolderError):
    """Raised when a former reservation holder tries to begin after its turn passed.

    The expired requester is not re-queued; it must call request_access()
    again.

    Attributes:
        generation: Generation of the lapsed reservation, if known.
    """

    def __init__(
        self,
        message: str,
        tenant_id: str,
        requester_id: str,
        holder_id: str | None = None,
        generation: int | None = None,
    ):
        super().__init__(message, tenant_id, requester_id, holder_id)
        self.generation = generation


class NotActiveHolderError(NotHolderError):
    """Raised when someone other than the active holder completes a session.

    This includes a former holder whose session was reclaimed after the
    active TTL elapsed.
    """

    pass


__all__ = [
    "NotActiveHolderError",
    "NotHolderError",
    "NotReservationHolderError",
    "RequesterNotFoundError",
    "ReservationExpiredError",
    "SlotSchedulerError",
]
