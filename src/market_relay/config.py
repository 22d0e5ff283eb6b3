from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="MARKET_RELAY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="allow",
    )

    service_name: str = "market-relay"
    service_host: str = "0.0.0.0"
    service_port: int = 4000
    log_level: Literal["debug", "info", "warning", "error", "critical"] = "info"
    log_dir: str | None = "logs"

    cors_allow_origins: list[str] = Field(default_factory=lambda: ["*"])

    cache_ttl_seconds: float = 5.0
    # None keeps serving the last good value for as long as upstream stays down
    cache_max_stale_seconds: float | None = None
    cache_single_flight: bool = False

    upstream_timeout_seconds: float = 4.0
    user_agent: str = "market-relay/0.1"

    symbol: str = "BTC"
    binance_symbol: str = "BTCUSDT"
    upbit_market: str = "KRW-BTC"
    binance_spot_base_url: str = "https://api.binance.com"
    binance_futures_base_url: str = "https://fapi.binance.com"
    upbit_base_url: str = "https://api.upbit.com"
    coinbase_base_url: str = "https://api.coinbase.com"
    fx_provider_urls: list[str] = Field(
        default_factory=lambda: [
            "https://api.exchangerate.host/latest?base=USD&symbols=KRW",
            "https://open.er-api.com/v6/latest/USD",
            "https://api.exchangerate-api.com/v4/latest/USD",
        ]
    )

    # Base URL of another relay instance, used by /proxy/risk
    relay_upstream_base_url: str | None = None

    alert_cooldown_seconds: float = 600.0
    alert_scheduler_enabled: bool = False
    alert_check_interval_seconds: float = 60.0


@lru_cache
def get_settings() -> Settings:
    return Settings()


__all__ = ["Settings", "get_settings"]
