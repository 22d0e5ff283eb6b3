from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta

from .alerts import AlertChecker, AlertCooldownTracker
from .cache import Clock, FetchCache
from .config import Settings, get_settings
from .providers import (
    BinanceFetcher,
    CoinbaseFetcher,
    ExchangeEndpoints,
    FxRateChain,
    UpbitFetcher,
    UpstreamClient,
    UpstreamClientConfig,
)
from .providers.exchanges import JsonClient
from .scheduler import AlertScheduler
from .services import PremiumService, PriceService, RiskService


@dataclass(slots=True)
class RelayServices:
    settings: Settings
    client: UpstreamClient | JsonClient
    price: PriceService
    risk: RiskService
    premium: PremiumService
    alerts: AlertChecker
    scheduler: AlertScheduler

    def caches(self) -> list[FetchCache]:
        return [self.price.cache, self.risk.cache, self.premium.cache, self.premium.fx_cache]

    async def start(self) -> None:
        await self.scheduler.start()

    async def aclose(self) -> None:
        await self.scheduler.stop()
        close = getattr(self.client, "close", None)
        if close is not None:
            await close()


def build_services(
    settings: Settings | None = None,
    *,
    client: JsonClient | None = None,
    clock: Clock | None = None,
) -> RelayServices:
    """
    Wire every cache, fetcher and the alert checker from settings.

    ``client`` and ``clock`` are injectable so tests can run the full stack
    against canned payloads and a fake clock.
    """

    settings = settings or get_settings()
    upstream = client or UpstreamClient(
        UpstreamClientConfig(
            timeout_seconds=settings.upstream_timeout_seconds,
            user_agent=settings.user_agent,
        )
    )
    endpoints = ExchangeEndpoints.from_settings(settings)
    binance = BinanceFetcher(upstream, endpoints)
    cache_options = {
        "ttl_seconds": settings.cache_ttl_seconds,
        "clock": clock,
        "max_stale_seconds": settings.cache_max_stale_seconds,
        "single_flight": settings.cache_single_flight,
    }
    price = PriceService(
        binance,
        symbol=settings.symbol,
        market_symbol=settings.binance_symbol,
        **cache_options,
    )
    risk = RiskService(binance, market_symbol=settings.binance_symbol, **cache_options)
    premium = PremiumService(
        binance,
        UpbitFetcher(upstream, endpoints),
        CoinbaseFetcher(upstream, endpoints),
        FxRateChain(upstream, settings.fx_provider_urls),
        symbol=settings.symbol,
        binance_symbol=settings.binance_symbol,
        upbit_market=settings.upbit_market,
        **cache_options,
    )
    alerts = AlertChecker(
        risk,
        AlertCooldownTracker(cooldown_seconds=settings.alert_cooldown_seconds),
        clock=clock,
    )
    scheduler = AlertScheduler(
        alerts.check,
        interval=timedelta(seconds=settings.alert_check_interval_seconds),
        enabled=settings.alert_scheduler_enabled,
    )
    logging.getLogger("market_relay.container").debug(
        "Built relay services (ttl=%ss, single_flight=%s)",
        settings.cache_ttl_seconds,
        settings.cache_single_flight,
    )
    return RelayServices(
        settings=settings,
        client=upstream,
        price=price,
        risk=risk,
        premium=premium,
        alerts=alerts,
        scheduler=scheduler,
    )


__all__ = ["RelayServices", "build_services"]
