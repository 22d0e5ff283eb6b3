"""
Observability helpers (Prometheus counters for caches, upstream calls and alerts).
"""

from .prometheus import (
    PROMETHEUS_CONTENT_TYPE,
    generate_prometheus_metrics,
    record_alert,
    record_cache_outcome,
    record_upstream_request,
    reset_prometheus_metrics,
)

__all__ = [
    "PROMETHEUS_CONTENT_TYPE",
    "generate_prometheus_metrics",
    "record_alert",
    "record_cache_outcome",
    "record_upstream_request",
    "reset_prometheus_metrics",
]
