from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Protocol

from ..cache import CacheResult, Clock, FetchCache
from ..errors import InvalidUpstreamField
from ._common import to_epoch_ms

PREMIUM_SOURCE = "binance+upbit+coinbase"


class _BinanceSpot(Protocol):
    async def fetch_spot_price(self, symbol: str = "BTCUSDT") -> float:
        ...


class _UpbitSpot(Protocol):
    async def fetch_spot_price(self, market: str = "KRW-BTC") -> float:
        ...


class _CoinbaseSpot(Protocol):
    async def fetch_spot_price(self, currency: str = "USD") -> float:
        ...


class _RateSource(Protocol):
    async def fetch_rate(self) -> float:
        ...


@dataclass(slots=True, frozen=True)
class PremiumState:
    symbol: str
    kimchi_premium: float
    coinbase_premium: float
    source: str = PREMIUM_SOURCE


def compute_premium(
    upbit_krw: float,
    binance_usd: float,
    coinbase_usd: float,
    usd_krw: float,
) -> tuple[float, float]:
    """Return ``(kimchi_premium, coinbase_premium)`` as fractions, e.g. 0.05 for 5%."""
    if binance_usd <= 0:
        raise InvalidUpstreamField("binance price", binance_usd)
    if usd_krw <= 0:
        raise InvalidUpstreamField("fx rate", usd_krw)
    kimchi_premium = upbit_krw / (binance_usd * usd_krw) - 1
    coinbase_premium = coinbase_usd / binance_usd - 1
    return kimchi_premium, coinbase_premium


class PremiumService:
    def __init__(
        self,
        binance: _BinanceSpot,
        upbit: _UpbitSpot,
        coinbase: _CoinbaseSpot,
        fx: _RateSource,
        *,
        symbol: str = "BTC",
        binance_symbol: str = "BTCUSDT",
        upbit_market: str = "KRW-BTC",
        ttl_seconds: float = 5.0,
        clock: Clock | None = None,
        max_stale_seconds: float | None = None,
        single_flight: bool = False,
    ) -> None:
        self._binance = binance
        self._upbit = upbit
        self._coinbase = coinbase
        self._symbol = symbol
        self._binance_symbol = binance_symbol
        self._upbit_market = upbit_market
        self.fx_cache: FetchCache[float] = FetchCache(
            "fx",
            fx.fetch_rate,
            ttl_seconds=ttl_seconds,
            clock=clock,
            max_stale_seconds=max_stale_seconds,
            single_flight=single_flight,
        )
        self.cache: FetchCache[PremiumState] = FetchCache(
            "premium",
            self._refresh,
            ttl_seconds=ttl_seconds,
            clock=clock,
            max_stale_seconds=max_stale_seconds,
            single_flight=single_flight,
        )

    async def _refresh(self) -> PremiumState:
        upbit_krw, binance_usd, coinbase_usd, fx = await asyncio.gather(
            self._upbit.fetch_spot_price(self._upbit_market),
            self._binance.fetch_spot_price(self._binance_symbol),
            self._coinbase.fetch_spot_price("USD"),
            self.fx_cache.get(),
        )
        if fx.error is not None:
            # stale FX rate fails the refresh
            raise fx.error
        kimchi_premium, coinbase_premium = compute_premium(upbit_krw, binance_usd, coinbase_usd, fx.value)
        return PremiumState(
            symbol=self._symbol,
            kimchi_premium=kimchi_premium,
            coinbase_premium=coinbase_premium,
        )

    async def get(self) -> CacheResult[PremiumState]:
        return await self.cache.get()

    async def get_payload(self) -> dict[str, object]:
        result = await self.get()
        state = result.value
        return {
            "symbol": state.symbol,
            "kimchiPremium": state.kimchi_premium,
            "coinbasePremium": state.coinbase_premium,
            "source": state.source,
            "cached": result.cached,
            "stale": result.stale,
            "ts": to_epoch_ms(result.fetched_at),
        }


__all__ = ["PREMIUM_SOURCE", "PremiumService", "PremiumState", "compute_premium"]
