# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Protocol for presentation layers that display scheduler state."""

from typing import Protocol, runtime_checkable

from ..types.slot import SchedulerSnapshot


@runtime_checkable
class BoardProtocol(Protocol):
    """
    Port invoked after every state transition so a board can re-render.

    Purely observational: the return value is ignored and failures are
    logged without affecting the scheduler.
    """

    async def render(self, tenant_id: str, snapshot: SchedulerSnapshot) -> None:
        """Render the latest snapshot for a tenant."""
        ...
