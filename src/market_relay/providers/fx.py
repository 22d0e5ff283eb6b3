from __future__ import annotations

import logging
from typing import Any, Sequence

from ..errors import InvalidUpstreamField, MissingConfiguration
from ..numeric import parse_number
from .exchanges import JsonClient


def extract_rate(payload: Any, currency: str = "KRW") -> float:
    """Read ``rates.<currency>`` from an FX payload, matching the key case-insensitively."""
    rates = payload.get("rates") if isinstance(payload, dict) else None
    if not isinstance(rates, dict):
        raise InvalidUpstreamField("fx rate", payload)
    wanted = currency.lower()
    for key, value in rates.items():
        if isinstance(key, str) and key.lower() == wanted:
            return parse_number(value, "fx rate")
    raise InvalidUpstreamField("fx rate", None)


class FxRateChain:
    """
    Ordered FX provider fallback.

    Providers are tried in sequence; the first one that answers with a usable
    rate wins. If every provider fails the last error is raised.
    """

    def __init__(self, client: JsonClient, provider_urls: Sequence[str], currency: str = "KRW") -> None:
        self._client = client
        self._provider_urls = list(provider_urls)
        self._currency = currency
        self._logger = logging.getLogger("market_relay.providers.fx")

    @property
    def provider_urls(self) -> list[str]:
        return list(self._provider_urls)

    async def fetch_rate(self) -> float:
        if not self._provider_urls:
            raise MissingConfiguration("fx_provider_urls")
        errors: list[Exception] = []
        for url in self._provider_urls:
            try:
                payload = await self._client.get_json(url)
                return extract_rate(payload, self._currency)
            except Exception as exc:
                self._logger.info("FX provider %s failed: %s", url, exc)
                errors.append(exc)
        raise errors[-1]


__all__ = ["FxRateChain", "extract_rate"]
