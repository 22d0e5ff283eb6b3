from __future__ import annotations

import logging

import pytest

from conftest import FakeClock, StubJsonClient, market_routes
from market_relay.alerts import AlertCheckResult, AlertChecker, AlertCooldownTracker, alert_key
from market_relay.errors import UpstreamUnreachable
from market_relay.providers import BinanceFetcher
from market_relay.risk import FUNDING_REASON, OPEN_INTEREST_REASON
from market_relay.services import RiskService

MINUTE = 60.0


def test_alert_key_is_order_sensitive_and_stable():
    key = alert_key("WARN", [FUNDING_REASON])
    assert key == alert_key("WARN", [FUNDING_REASON])
    assert len(key) == 64
    assert alert_key("DANGER", [FUNDING_REASON, OPEN_INTEREST_REASON]) != alert_key(
        "DANGER", [OPEN_INTEREST_REASON, FUNDING_REASON]
    )


def test_cooldown_window_suppresses_repeats_then_fires_again():
    tracker = AlertCooldownTracker(cooldown_seconds=10 * MINUTE)
    now = 1_700_000_000.0

    assert tracker.should_alert("WARN", [FUNDING_REASON], now) is True
    assert tracker.should_alert("WARN", [FUNDING_REASON], now + 1 * MINUTE) is False
    assert tracker.last_alert("WARN", [FUNDING_REASON]) == now
    assert tracker.should_alert("WARN", [FUNDING_REASON], now + 11 * MINUTE) is True
    assert tracker.last_alert("WARN", [FUNDING_REASON]) == now + 11 * MINUTE


def test_ok_level_never_alerts_and_is_not_recorded():
    tracker = AlertCooldownTracker()
    assert tracker.should_alert("OK", [], 0.0) is False
    assert len(tracker) == 0


def test_distinct_reason_sets_have_independent_cooldowns():
    tracker = AlertCooldownTracker(cooldown_seconds=10 * MINUTE)
    assert tracker.should_alert("WARN", [FUNDING_REASON], 0.0) is True
    assert tracker.should_alert("WARN", [OPEN_INTEREST_REASON], 1.0) is True
    assert tracker.should_alert("DANGER", [FUNDING_REASON, OPEN_INTEREST_REASON], 2.0) is True
    assert len(tracker) == 3


def test_sweep_drops_only_elapsed_records():
    tracker = AlertCooldownTracker(cooldown_seconds=10 * MINUTE)
    tracker.should_alert("WARN", [FUNDING_REASON], 0.0)
    tracker.should_alert("WARN", [OPEN_INTEREST_REASON], 5 * MINUTE)

    assert tracker.sweep(10 * MINUTE) == 1
    assert tracker.last_alert("WARN", [FUNDING_REASON]) is None
    assert tracker.last_alert("WARN", [OPEN_INTEREST_REASON]) == 5 * MINUTE


def _checker(client: StubJsonClient, clock: FakeClock) -> AlertChecker:
    risk = RiskService(BinanceFetcher(client), clock=clock)
    return AlertChecker(risk, AlertCooldownTracker(cooldown_seconds=10 * MINUTE), clock=clock)


@pytest.mark.asyncio
async def test_checker_fires_logs_and_then_respects_cooldown(caplog):
    clock = FakeClock()
    checker = _checker(StubJsonClient(market_routes(funding_rate="0.0006")), clock)

    with caplog.at_level(logging.WARNING, logger="market_relay.alerts"):
        first = await checker.check()
    assert first.ok is True
    assert first.alerted is True
    assert first.last_alert_ts == clock()
    messages = [record.getMessage() for record in caplog.records]
    assert any("[ALERT] level=WARN funding=0.0006 oi=100.0" in message for message in messages)

    first_ts = clock()
    clock.advance(1 * MINUTE)
    second = await checker.check()
    assert second.alerted is False
    assert second.last_alert_ts == first_ts

    clock.advance(10 * MINUTE)
    third = await checker.check()
    assert third.alerted is True
    assert third.last_alert_ts == clock()


@pytest.mark.asyncio
async def test_checker_reports_ok_without_alert_for_calm_market():
    checker = _checker(StubJsonClient(market_routes()), FakeClock())
    result = await checker.check()
    assert result.ok is True
    assert result.alerted is False
    assert result.as_dict() == {"ok": True, "alerted": False}


@pytest.mark.asyncio
async def test_checker_never_raises_on_upstream_failure():
    client = StubJsonClient({"/fapi/v1/": UpstreamUnreachable("https://fapi.binance.com", "dns failure")})
    result = await _checker(client, FakeClock()).check()

    assert result.ok is False
    assert "dns failure" in result.error
    assert result.as_dict() == {"ok": False, "error": result.error}


def test_result_serializes_last_alert_in_milliseconds():
    payload = AlertCheckResult(ok=True, alerted=True, last_alert_ts=1_700_000_000.5).as_dict()
    assert payload == {"ok": True, "alerted": True, "lastAlertTs": 1_700_000_000_500}
