from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from ..config import Settings
from ..errors import InvalidUpstreamField
from ..numeric import parse_number


class JsonClient(Protocol):
    async def get_json(self, url: str) -> Any:
        ...


def _join(base_url: str, path: str) -> str:
    return f"{base_url.rstrip('/')}{path}"


@dataclass(slots=True)
class ExchangeEndpoints:
    binance_spot_base_url: str = "https://api.binance.com"
    binance_futures_base_url: str = "https://fapi.binance.com"
    upbit_base_url: str = "https://api.upbit.com"
    coinbase_base_url: str = "https://api.coinbase.com"

    @classmethod
    def from_settings(cls, settings: Settings) -> "ExchangeEndpoints":
        return cls(
            binance_spot_base_url=settings.binance_spot_base_url,
            binance_futures_base_url=settings.binance_futures_base_url,
            upbit_base_url=settings.upbit_base_url,
            coinbase_base_url=settings.coinbase_base_url,
        )


class BinanceFetcher:
    """Spot price, funding rate and open interest from Binance REST endpoints."""

    def __init__(self, client: JsonClient, endpoints: ExchangeEndpoints | None = None) -> None:
        self._client = client
        self._endpoints = endpoints or ExchangeEndpoints()

    async def fetch_spot_price(self, symbol: str = "BTCUSDT") -> float:
        url = _join(self._endpoints.binance_spot_base_url, f"/api/v3/ticker/price?symbol={symbol}")
        payload = await self._client.get_json(url)
        return parse_number(_field(payload, "price"), "binance price")

    async def fetch_funding_rate(self, symbol: str = "BTCUSDT") -> float:
        url = _join(self._endpoints.binance_futures_base_url, f"/fapi/v1/premiumIndex?symbol={symbol}")
        payload = await self._client.get_json(url)
        return parse_number(_field(payload, "lastFundingRate"), "fundingRate")

    async def fetch_open_interest(self, symbol: str = "BTCUSDT") -> float:
        url = _join(self._endpoints.binance_futures_base_url, f"/fapi/v1/openInterest?symbol={symbol}")
        payload = await self._client.get_json(url)
        return parse_number(_field(payload, "openInterest"), "openInterest")


class UpbitFetcher:
    def __init__(self, client: JsonClient, endpoints: ExchangeEndpoints | None = None) -> None:
        self._client = client
        self._endpoints = endpoints or ExchangeEndpoints()

    async def fetch_spot_price(self, market: str = "KRW-BTC") -> float:
        url = _join(self._endpoints.upbit_base_url, f"/v1/ticker?markets={market}")
        payload = await self._client.get_json(url)
        if not isinstance(payload, list) or not payload:
            raise InvalidUpstreamField("upbit price", payload)
        return parse_number(_field(payload[0], "trade_price"), "upbit price")


class CoinbaseFetcher:
    def __init__(self, client: JsonClient, endpoints: ExchangeEndpoints | None = None) -> None:
        self._client = client
        self._endpoints = endpoints or ExchangeEndpoints()

    async def fetch_spot_price(self, currency: str = "USD") -> float:
        url = _join(self._endpoints.coinbase_base_url, f"/v2/prices/spot?currency={currency}")
        payload = await self._client.get_json(url)
        data = _field(payload, "data")
        return parse_number(_field(data, "amount"), "coinbase price")


def _field(payload: Any, key: str) -> Any:
    if isinstance(payload, dict):
        return payload.get(key)
    return None


__all__ = [
    "BinanceFetcher",
    "CoinbaseFetcher",
    "ExchangeEndpoints",
    "JsonClient",
    "UpbitFetcher",
]
