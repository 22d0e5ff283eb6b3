from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, TypeVar

from .observability import record_cache_outcome

T = TypeVar("T")

Clock = Callable[[], float]


@dataclass(slots=True)
class CachedValue(Generic[T]):
    value: T | None
    fetched_at: float
    expires_at: float


@dataclass(slots=True)
class CacheResult(Generic[T]):
    value: T
    fetched_at: float
    cached: bool
    stale: bool
    error: Exception | None = None


class FetchCache(Generic[T]):
    """
    Freshness-gated cache around a single refresh coroutine.

    A stored value is served while ``now < expires_at``. Once expired the
    refresh function runs; if it fails, the last good value is returned marked
    stale instead of surfacing the error. Only when nothing was ever fetched
    (or the optional staleness ceiling is exceeded) does the failure propagate.

    Concurrent callers that observe an expired entry each trigger their own
    refresh unless ``single_flight`` is enabled, in which case they share one
    in-flight call.
    """

    def __init__(
        self,
        name: str,
        refresh: Callable[[], Awaitable[T]],
        *,
        ttl_seconds: float = 5.0,
        clock: Clock | None = None,
        max_stale_seconds: float | None = None,
        single_flight: bool = False,
    ) -> None:
        self._name = name
        self._refresh = refresh
        self._ttl_seconds = ttl_seconds
        self._clock = clock or time.time
        self._max_stale_seconds = max_stale_seconds
        self._single_flight = single_flight
        self._entry: CachedValue[T] = CachedValue(value=None, fetched_at=0.0, expires_at=0.0)
        self._inflight: asyncio.Future[T] | None = None
        self._logger = logging.getLogger(f"market_relay.cache.{name}")

    @property
    def name(self) -> str:
        return self._name

    @property
    def ttl_seconds(self) -> float:
        return self._ttl_seconds

    @property
    def current(self) -> CachedValue[T]:
        return self._entry

    def age_seconds(self) -> float | None:
        if self._entry.value is None:
            return None
        return max(self._clock() - self._entry.fetched_at, 0.0)

    def clear(self) -> None:
        self._entry = CachedValue(value=None, fetched_at=0.0, expires_at=0.0)

    async def get(self) -> CacheResult[T]:
        now = self._clock()
        entry = self._entry
        if entry.value is not None and now < entry.expires_at:
            record_cache_outcome(self._name, "hit")
            return CacheResult(value=entry.value, fetched_at=entry.fetched_at, cached=True, stale=False)

        try:
            value = await self._run_refresh()
        except Exception as exc:
            previous = self._entry
            if previous.value is not None and not self._beyond_stale_ceiling(previous):
                self._logger.warning(
                    "Refresh failed for %s, serving value fetched at %.3f: %s",
                    self._name,
                    previous.fetched_at,
                    exc,
                )
                record_cache_outcome(self._name, "stale")
                return CacheResult(
                    value=previous.value,
                    fetched_at=previous.fetched_at,
                    cached=True,
                    stale=True,
                    error=exc,
                )
            record_cache_outcome(self._name, "error")
            raise

        fetched_at = self._clock()
        self._entry = CachedValue(value=value, fetched_at=fetched_at, expires_at=fetched_at + self._ttl_seconds)
        record_cache_outcome(self._name, "live")
        self._logger.debug("Refreshed %s at %.3f", self._name, fetched_at)
        return CacheResult(value=value, fetched_at=fetched_at, cached=False, stale=False)

    async def _run_refresh(self) -> T:
        if not self._single_flight:
            return await self._refresh()
        inflight = self._inflight
        if inflight is None:
            inflight = asyncio.ensure_future(self._refresh())
            self._inflight = inflight
            inflight.add_done_callback(self._clear_inflight)
        return await asyncio.shield(inflight)

    def _clear_inflight(self, future: asyncio.Future[T]) -> None:
        if self._inflight is future:
            self._inflight = None

    def _beyond_stale_ceiling(self, entry: CachedValue[T]) -> bool:
        if self._max_stale_seconds is None:
            return False
        return (self._clock() - entry.fetched_at) > self._max_stale_seconds


__all__ = ["CachedValue", "CacheResult", "Clock", "FetchCache"]
