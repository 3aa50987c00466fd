# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Notifier and board adapters that write to the standard logging system."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from ..types.outcome import NotificationKind
from ..types.slot import SchedulerSnapshot, SlotState

logger = logging.getLogger(__name__)

_STATE_LINES = {
    SlotState.IDLE: "Free - anyone can start",
    SlotState.RESERVED: "Reserved for {holder} ({label}), confirm within {remaining}",
    SlotState.ACTIVE: "In use by {holder} ({label}), {remaining} left",
}


def _format_remaining(seconds: float) -> str:
    seconds = max(0, int(seconds))
    minutes, seconds = divmod(seconds, 60)
    if minutes:
        return f"{minutes}m {seconds:02d}s"
    return f"{seconds}s"


def format_snapshot(snapshot: SchedulerSnapshot, now: float | None = None) -> str:
    """
    Render a snapshot as the plain-text queue board.

    Args:
        snapshot: Snapshot to render
        now: Clock time used for the remaining-time column (defaults to
            the snapshot's own timestamp)

    Returns:
        Multi-line text, one line for the slot and one per queued requester
    """
    now = snapshot.taken_at if now is None else now
    holder = snapshot.active or snapshot.reservation
    line = _STATE_LINES[snapshot.state].format(
        holder=holder.requester_id if holder else "",
        label=(holder.job_label or "no label") if holder else "",
        remaining=_format_remaining(holder.expires_at - now) if holder else "",
    )
    if snapshot.handoff_pending:
        line = "Finishing up - next in line is served shortly"

    lines = [f"[{snapshot.tenant_id}] {line}"]
    if snapshot.queue:
        lines.append(f"Queue ({len(snapshot.queue)}):")
        for position, pending in enumerate(snapshot.queue, start=1):
            label = f" - {pending.job_label}" if pending.job_label else ""
            lines.append(f"  {position}. {pending.requester_id}{label}")
    else:
        lines.append("Queue is empty")
    return "\n".join(lines)


class LoggingNotifier:
    """Notifier that logs every notification instead of delivering it."""

    def __init__(self, level: int = logging.INFO) -> None:
        self._level = level

    async def notify(
        self,
        requester_id: str,
        kind: NotificationKind,
        details: Mapping[str, Any],
    ) -> None:
        logger.log(
            self._level,
            "notify %s: %s %s",
            requester_id,
            kind.value,
            dict(details),
        )


class LoggingBoard:
    """Board that logs the text rendering of each snapshot."""

    def __init__(self, level: int = logging.INFO) -> None:
        self._level = level

    async def render(self, tenant_id: str, snapshot: SchedulerSnapshot) -> None:
        logger.log(self._level, "board update\n%s", format_snapshot(snapshot))


__all__ = ["LoggingBoard", "LoggingNotifier", "format_snapshot"]
