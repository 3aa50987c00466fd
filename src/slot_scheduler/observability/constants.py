# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Metric name constants following Prometheus naming conventions.

All metric names use the `slot_scheduler_` prefix.

Naming Conventions:
    - Counter metrics end with `_total`
    - Histogram metrics for time end with `_seconds`
    - Gauges use present-tense descriptive names

Label Best Practices:
    To prevent label cardinality explosion, use only:
    - `tenant_id` - Tenant scope (one per server/organization)
    - `outcome` - request_access result (granted, queued, already_granted, already_queued)
    - `path` - How a reservation was granted (immediate, handoff)
    - `role` - What a cancellation withdrew (queued, reserved, active)
    - `kind` - Timer kind (reservation, active, settle)
    - `port` - Collaborator port (notifier, board)

    NEVER use:
    - `requester_id` - Unique per user (unbounded!)
    - `generation` - Grows forever (unbounded!)
"""


# =============================================================================
# Global Prefix
# =============================================================================

METRIC_PREFIX = "slot_scheduler"
"""Prefix for all Prometheus metrics in this library."""


# =============================================================================
# Admission Metrics
# =============================================================================

ACCESS_REQUESTS_TOTAL = f"{METRIC_PREFIX}_access_requests_total"
"""Total request_access() calls, by outcome."""

RESERVATIONS_GRANTED_TOTAL = f"{METRIC_PREFIX}_reservations_granted_total"
"""Total reservations created, by grant path."""

REQUESTS_CANCELLED_TOTAL = f"{METRIC_PREFIX}_requests_cancelled_total"
"""Total voluntary withdrawals, by the role that was withdrawn."""


# =============================================================================
# Session Metrics
# =============================================================================

SESSIONS_STARTED_TOTAL = f"{METRIC_PREFIX}_sessions_started_total"
"""Total reservations confirmed into active sessions."""

SESSIONS_COMPLETED_TOTAL = f"{METRIC_PREFIX}_sessions_completed_total"
"""Total sessions released by their holder."""


# =============================================================================
# Expiry Metrics
# =============================================================================

RESERVATIONS_EXPIRED_TOTAL = f"{METRIC_PREFIX}_reservations_expired_total"
"""Total reservations that lapsed before being confirmed."""

SESSIONS_RECLAIMED_TOTAL = f"{METRIC_PREFIX}_sessions_reclaimed_total"
"""Total active sessions forcibly reclaimed at their TTL."""

STALE_TIMERS_TOTAL = f"{METRIC_PREFIX}_stale_timers_total"
"""Total timer callbacks ignored because their generation was stale."""


# =============================================================================
# Port Metrics
# =============================================================================

PORT_FAILURES_TOTAL = f"{METRIC_PREFIX}_port_failures_total"
"""Total notifier/board calls that raised or timed out."""


# =============================================================================
# Gauges and Histograms
# =============================================================================

QUEUE_DEPTH = f"{METRIC_PREFIX}_queue_depth"
"""Current number of requesters waiting per tenant."""

QUEUE_WAIT_SECONDS = f"{METRIC_PREFIX}_queue_wait_seconds"
"""Time spent in the queue before a reservation was granted (histogram)."""

SESSION_DURATION_SECONDS = f"{METRIC_PREFIX}_session_duration_seconds"
"""Duration of active sessions from begin to release (histogram)."""


# =============================================================================
# Histogram Buckets
# =============================================================================

WAIT_BUCKETS: list[float] = [
    1.0,
    5.0,
    15.0,
    30.0,
    60.0,
    120.0,
    300.0,
    600.0,
    1200.0,
    1800.0,
    3600.0,
]
"""Queue wait buckets (in seconds, up to one hour)."""

SESSION_DURATION_BUCKETS: list[float] = [
    5.0,
    15.0,
    30.0,
    60.0,
    120.0,
    300.0,
    600.0,
    900.0,
    1800.0,
]
"""Session duration buckets (in seconds)."""


__all__ = [
    "ACCESS_REQUESTS_TOTAL",
    "METRIC_PREFIX",
    "PORT_FAILURES_TOTAL",
    "QUEUE_DEPTH",
    "QUEUE_WAIT_SECONDS",
    "REQUESTS_CANCELLED_TOTAL",
    "RESERVATIONS_EXPIRED_TOTAL",
    "RESERVATIONS_GRANTED_TOTAL",
    "SESSIONS_COMPLETED_TOTAL",
    "SESSIONS_RECLAIMED_TOTAL",
    "SESSIONS_STARTED_TOTAL",
    "SESSION_DURATION_BUCKETS",
    "SESSION_DURATION_SECONDS",
    "STALE_TIMERS_TOTAL",
    "WAIT_BUCKETS",
]
