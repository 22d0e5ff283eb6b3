from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from ..cache import CacheResult, Clock, FetchCache
from ._common import to_epoch_ms


class SpotPriceSource(Protocol):
    async def fetch_spot_price(self, symbol: str = "BTCUSDT") -> float:
        ...


@dataclass(slots=True, frozen=True)
class PricePayload:
    symbol: str
    currency: str
    price: float
    source: str


class PriceService:
    """Cached Binance spot price for the configured symbol."""

    def __init__(
        self,
        source: SpotPriceSource,
        *,
        symbol: str = "BTC",
        market_symbol: str = "BTCUSDT",
        currency: str = "USDT",
        ttl_seconds: float = 5.0,
        clock: Clock | None = None,
        max_stale_seconds: float | None = None,
        single_flight: bool = False,
    ) -> None:
        self._source = source
        self._symbol = symbol
        self._market_symbol = market_symbol
        self._currency = currency
        self.cache: FetchCache[PricePayload] = FetchCache(
            "price",
            self._refresh,
            ttl_seconds=ttl_seconds,
            clock=clock,
            max_stale_seconds=max_stale_seconds,
            single_flight=single_flight,
        )

    @property
    def symbol(self) -> str:
        return self._symbol

    async def _refresh(self) -> PricePayload:
        price = await self._source.fetch_spot_price(self._market_symbol)
        return PricePayload(symbol=self._symbol, currency=self._currency, price=price, source="binance")

    async def get(self) -> CacheResult[PricePayload]:
        return await self.cache.get()

    async def get_payload(self) -> dict[str, object]:
        result = await self.get()
        payload = result.value
        return {
            "symbol": payload.symbol,
            "currency": payload.currency,
            "price": payload.price,
            "source": payload.source,
            "cached": result.cached,
            "stale": result.stale,
            "fetchedAt": to_epoch_ms(result.fetched_at),
        }


__all__ = ["PricePayload", "PriceService", "SpotPriceSource"]
