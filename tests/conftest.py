from __future__ import annotations

from typing import Any, Callable

import pytest

from market_relay.config import Settings
from market_relay.errors import UpstreamUnreachable

FX_URLS = [
    "https://fx-one.test/latest",
    "https://fx-two.test/latest",
    "https://fx-three.test/latest",
]


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self._now = start

    def advance(self, seconds: float) -> None:
        self._now += seconds

    def __call__(self) -> float:
        return self._now


class StubJsonClient:
    """Answers ``get_json`` from a map of URL fragment -> payload, exception or callable."""

    def __init__(self, routes: dict[str, Any] | None = None) -> None:
        self.routes: dict[str, Any] = dict(routes or {})
        self.calls: list[str] = []

    async def get_json(self, url: str) -> Any:
        self.calls.append(url)
        for fragment, response in self.routes.items():
            if fragment in url:
                if isinstance(response, Exception):
                    raise response
                if callable(response):
                    return response()
                return response
        raise UpstreamUnreachable(url, "no stub route")

    def calls_matching(self, fragment: str) -> int:
        return sum(1 for url in self.calls if fragment in url)


def market_routes(
    *,
    binance_price: Any = "100000.00",
    funding_rate: Any = "0.00010000",
    open_interest: Any = "100.000",
    upbit_price: Any = 140_000_000.0,
    coinbase_price: Any = "100100.00",
    usd_krw: Any = 1300,
) -> dict[str, Any]:
    return {
        "/api/v3/ticker/price": {"symbol": "BTCUSDT", "price": binance_price},
        "/fapi/v1/premiumIndex": {"symbol": "BTCUSDT", "lastFundingRate": funding_rate},
        "/fapi/v1/openInterest": {"symbol": "BTCUSDT", "openInterest": open_interest},
        "api.upbit.com/v1/ticker": [{"market": "KRW-BTC", "trade_price": upbit_price}],
        "/v2/prices/spot": {"data": {"base": "BTC", "currency": "USD", "amount": coinbase_price}},
        "fx-one.test": {"base": "USD", "rates": {"KRW": usd_krw}},
    }


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def stub_client_factory() -> Callable[..., StubJsonClient]:
    def _factory(**overrides: Any) -> StubJsonClient:
        return StubJsonClient(market_routes(**overrides))

    return _factory


@pytest.fixture
def settings() -> Settings:
    return Settings(
        log_dir=None,
        fx_provider_urls=list(FX_URLS),
        alert_scheduler_enabled=False,
        relay_upstream_base_url=None,
    )
