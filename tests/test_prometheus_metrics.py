from fastapi.testclient import TestClient

from conftest import StubJsonClient, market_routes
from market_relay.container import build_services
from market_relay.main import create_app
from market_relay.observability import (
    PROMETHEUS_CONTENT_TYPE,
    generate_prometheus_metrics,
    record_alert,
    record_cache_outcome,
    record_upstream_request,
    reset_prometheus_metrics,
)


def test_prometheus_recorders_emit_metrics():
    reset_prometheus_metrics()
    record_cache_outcome("price", "live")
    record_cache_outcome("price", "stale")
    record_upstream_request("api.binance.com", "success")
    record_upstream_request("", "unreachable")
    record_alert("WARN")

    payload = generate_prometheus_metrics().decode()
    assert 'relay_cache_requests_total{cache="price",outcome="stale"} 1.0' in payload
    assert 'host="api.binance.com",result="success"' in payload
    assert 'host="unknown",result="unreachable"' in payload
    assert 'relay_alerts_total{level="WARN"} 1.0' in payload


def test_prometheus_metrics_endpoint_counts_cache_reads(settings, clock):
    reset_prometheus_metrics()
    services = build_services(settings, client=StubJsonClient(market_routes()), clock=clock)
    app = create_app(services=services)

    with TestClient(app) as client:
        client.get("/price")
        client.get("/price")
        response = client.get("/metrics")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith(PROMETHEUS_CONTENT_TYPE.split(";")[0])
    assert 'relay_cache_requests_total{cache="price",outcome="live"} 1.0' in response.text
    assert 'relay_cache_requests_total{cache="price",outcome="hit"} 1.0' in response.text
