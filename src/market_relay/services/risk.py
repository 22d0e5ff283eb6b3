from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Literal, Protocol

from ..cache import CacheResult, Clock, FetchCache
from ..risk import RiskAssessment, compute_risk
from ._common import to_epoch_ms

RiskSource = Literal["live", "cache", "stale-cache"]


class DerivativesSource(Protocol):
    async def fetch_funding_rate(self, symbol: str = "BTCUSDT") -> float:
        ...

    async def fetch_open_interest(self, symbol: str = "BTCUSDT") -> float:
        ...


@dataclass(slots=True, frozen=True)
class RiskState:
    symbol: str
    funding_rate: float
    open_interest: float
    risk: RiskAssessment
    prev_open_interest: float | None = None


def source_label(result: CacheResult[RiskState]) -> RiskSource:
    if not result.cached:
        return "live"
    return "stale-cache" if result.stale else "cache"


class RiskService:
    """
    Funding rate + open interest snapshot with a risk classification.

    The open interest of the previous successful fetch is carried into the
    next refresh so the classifier can detect jumps.
    """

    def __init__(
        self,
        source: DerivativesSource,
        *,
        market_symbol: str = "BTCUSDT",
        ttl_seconds: float = 5.0,
        clock: Clock | None = None,
        max_stale_seconds: float | None = None,
        single_flight: bool = False,
    ) -> None:
        self._source = source
        self._market_symbol = market_symbol
        self.cache: FetchCache[RiskState] = FetchCache(
            "risk",
            self._refresh,
            ttl_seconds=ttl_seconds,
            clock=clock,
            max_stale_seconds=max_stale_seconds,
            single_flight=single_flight,
        )

    async def _refresh(self) -> RiskState:
        funding_rate, open_interest = await asyncio.gather(
            self._source.fetch_funding_rate(self._market_symbol),
            self._source.fetch_open_interest(self._market_symbol),
        )
        previous = self.cache.current.value
        prev_open_interest = previous.open_interest if previous is not None else None
        return RiskState(
            symbol=self._market_symbol,
            funding_rate=funding_rate,
            open_interest=open_interest,
            risk=compute_risk(funding_rate, open_interest, prev_open_interest),
            prev_open_interest=prev_open_interest,
        )

    async def get(self) -> CacheResult[RiskState]:
        return await self.cache.get()

    async def get_payload(self) -> dict[str, object]:
        result = await self.get()
        state = result.value
        return {
            "symbol": state.symbol,
            "fundingRate": state.funding_rate,
            "openInterest": state.open_interest,
            "risk": state.risk.as_dict(),
            "source": source_label(result),
            "ts": to_epoch_ms(result.fetched_at),
        }


__all__ = ["DerivativesSource", "RiskService", "RiskSource", "RiskState", "source_label"]
