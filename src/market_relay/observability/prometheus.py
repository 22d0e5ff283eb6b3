from __future__ import annotations

from typing import Literal

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    generate_latest,
)

PROMETHEUS_CONTENT_TYPE = CONTENT_TYPE_LATEST

CacheOutcome = Literal["live", "hit", "stale", "error"]
UpstreamResult = Literal["success", "http_error", "unreachable", "invalid"]


def _build_registry() -> tuple[CollectorRegistry, Counter, Counter, Counter]:
    registry = CollectorRegistry()
    cache_counter = Counter(
        "relay_cache_requests_total",
        "Cache reads grouped by cache name and outcome",
        labelnames=("cache", "outcome"),
        registry=registry,
    )
    upstream_counter = Counter(
        "relay_upstream_requests_total",
        "Outbound upstream requests grouped by host and result",
        labelnames=("host", "result"),
        registry=registry,
    )
    alert_counter = Counter(
        "relay_alerts_total",
        "Risk alerts fired after cooldown filtering",
        labelnames=("level",),
        registry=registry,
    )
    return registry, cache_counter, upstream_counter, alert_counter


_registry, _cache_counter, _upstream_counter, _alert_counter = _build_registry()


def record_cache_outcome(cache: str, outcome: CacheOutcome) -> None:
    _cache_counter.labels(cache=cache, outcome=outcome).inc()


def record_upstream_request(host: str, result: UpstreamResult) -> None:
    _upstream_counter.labels(host=host or "unknown", result=result).inc()


def record_alert(level: str) -> None:
    _alert_counter.labels(level=level).inc()


def generate_prometheus_metrics() -> bytes:
    return generate_latest(_registry)


def reset_prometheus_metrics() -> None:
    global _registry, _cache_counter, _upstream_counter, _alert_counter
    _registry, _cache_counter, _upstream_counter, _alert_counter = _build_registry()
