from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlparse

import httpx

from ..errors import InvalidUpstreamField, UpstreamHttpError, UpstreamUnreachable
from ..observability import record_upstream_request


@dataclass(slots=True)
class UpstreamClientConfig:
    timeout_seconds: float = 4.0
    user_agent: str = "market-relay/0.1"
    headers: dict[str, str] | None = None


class UpstreamClient:
    """
    Thin JSON GET wrapper shared by every outbound call.

    Each request is bounded as a whole by ``asyncio.wait_for`` so a stalled
    upstream cannot hold a caller past ``timeout_seconds``; cancellation
    releases the pooled connection on every exit path.
    """

    def __init__(
        self,
        config: UpstreamClientConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config or UpstreamClientConfig()
        headers = {"Accept": "application/json", "User-Agent": self._config.user_agent}
        if self._config.headers:
            headers.update(self._config.headers)
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=self._config.timeout_seconds, headers=headers)
        self._headers = headers
        self._logger = logging.getLogger("market_relay.providers.http")

    @property
    def timeout_seconds(self) -> float:
        return self._config.timeout_seconds

    async def get_json(self, url: str) -> Any:
        host = urlparse(url).netloc
        try:
            response = await asyncio.wait_for(
                self._client.get(url, headers=self._headers),
                timeout=self._config.timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            record_upstream_request(host, "unreachable")
            raise UpstreamUnreachable(url, f"timed out after {self._config.timeout_seconds}s") from exc
        except httpx.HTTPError as exc:
            record_upstream_request(host, "unreachable")
            raise UpstreamUnreachable(url, str(exc) or type(exc).__name__) from exc

        if response.status_code >= 400:
            record_upstream_request(host, "http_error")
            raise UpstreamHttpError(url, response.status_code, response.text)
        try:
            payload = response.json()
        except ValueError as exc:
            record_upstream_request(host, "invalid")
            raise InvalidUpstreamField("json body", response.text[:200]) from exc
        record_upstream_request(host, "success")
        self._logger.debug("GET %s -> %s", url, response.status_code)
        return payload

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()


__all__ = ["UpstreamClient", "UpstreamClientConfig"]
