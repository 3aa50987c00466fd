# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Observability and metrics for the slot scheduler.

Classes:
    UnifiedMetricsCollector: Metrics collector supporting dict and Prometheus.

Protocols:
    MetricsCollectorProtocol: Protocol for metrics collection backends.

Functions:
    get_metrics_collector: Get the global metrics collector singleton.
    reset_metrics_collector: Reset the global metrics collector singleton.
"""

from .collector import (
    METRIC_DEFINITIONS,
    MetricDefinition,
    UnifiedMetricsCollector,
    get_metrics_collector,
    reset_metrics_collector,
)
from .constants import (
    ACCESS_REQUESTS_TOTAL,
    METRIC_PREFIX,
    PORT_FAILURES_TOTAL,
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
from .protocols import MetricsCollectorProtocol

__all__ = [
    "ACCESS_REQUESTS_TOTAL",
    "METRIC_DEFINITIONS",
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
    "SESSION_DURATION_SECONDS",
    "STALE_TIMERS_TOTAL",
    "MetricDefinition",
    "MetricsCollectorProtocol",
    "UnifiedMetricsCollector",
    "get_metrics_collector",
    "reset_metrics_collector",
]
