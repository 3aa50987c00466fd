# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Scheduler Configuration for the slot scheduler.

Holds the TTLs that bound every reservation and session, hand-off timing,
notification switches and port delivery limits.
"""

import math
from dataclasses import dataclass


@dataclass
class SchedulerConfig:
    """
    Configuration shared by every tenant scheduler in a registry.
    """

    # === Time-to-live ===

    reservation_ttl: float = 180.0
    """Seconds a reservation holder has to call begin_session()."""

    active_ttl: float = 900.0
    """Seconds an active session may run before it is reclaimed."""

    # === Hand-off ===

    default_settle_delay: float = 0.0
    """Delay before handing the slot to the next requester after a clean completion.

    Used by complete_session() when the caller does not pass settle_delay.
    Gives external side effects (e.g. a results announcement) time to finish.
    """

    # === Notifications ===

    notify_queue_position: bool = False
    """Send QUEUE_POSITION_CHANGED to requesters whose position moved."""

    port_timeout: float = 10.0
    """Maximum seconds a single notifier/board call may take before it is abandoned."""

    lapsed_history_size: int = 256
    """Number of lapsed reservations remembered to report ReservationExpiredError."""

    # === Metrics ===

    metrics_enabled: bool = True
    """Record scheduler metrics in the metrics collector."""

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        for name in (
            "reservation_ttl",
            "active_ttl",
            "default_settle_delay",
            "port_timeout",
        ):
            if not math.isfinite(getattr(self, name)):
                raise ValueError(f"{name} must be finite")
        if self.reservation_ttl <= 0:
            raise ValueError("reservation_ttl must be positive")
        if self.active_ttl <= 0:
            raise ValueError("active_ttl must be positive")
        if self.reservation_ttl >= self.active_ttl:
            raise ValueError("reservation_ttl must be shorter than active_ttl")
        if self.default_settle_delay < 0:
            raise ValueError("default_settle_delay must be non-negative")
        if self.port_timeout <= 0:
            raise ValueError("port_timeout must be positive")
        if self.lapsed_history_size < 1:
            raise ValueError("lapsed_history_size must be at least 1")


__all__ = ["SchedulerConfig"]
