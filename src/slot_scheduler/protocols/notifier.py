# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Protocol for notifying requesters about their turn."""

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from ..types.outcome import NotificationKind


@runtime_checkable
class NotifierProtocol(Protocol):
    """
    Port used to tell a requester about grants and expiries.

    The scheduler treats delivery as fire-and-forget: calls happen after the
    transition is committed, and any exception is logged and dropped. A
    requester who cannot be reached still loses their slot on schedule.

    The ``details`` mapping always carries ``tenant_id`` and ``job_label``;
    grants add ``generation`` and ``expires_at``, position updates add
    ``position``.
    """

    async def notify(
        self,
        requester_id: str,
        kind: NotificationKind,
        details: Mapping[str, Any],
    ) -> None:
        """Deliver a notification to a requester."""
        ...
