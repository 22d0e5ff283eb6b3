"""Error taxonomy for upstream calls and configuration problems."""
from __future__ import annotations

from typing import Any


class RelayError(RuntimeError):
    pass


class InvalidUpstreamField(RelayError):
    def __init__(self, label: str, raw: Any = None) -> None:
        super().__init__(f"Invalid {label} value: {raw!r}")
        self.label = label
        self.raw = raw


class UpstreamHttpError(RelayError):
    def __init__(self, url: str, status_code: int, body: str = "") -> None:
        body = body[:500]
        super().__init__(f"Upstream error {status_code} from {url}: {body}")
        self.url = url
        self.status_code = status_code
        self.body = body


class UpstreamUnreachable(RelayError):
    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Upstream {url} unreachable: {reason}")
        self.url = url
        self.reason = reason


class MissingConfiguration(RelayError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Missing configuration: {name}")
        self.name = name


__all__ = [
    "RelayError",
    "InvalidUpstreamField",
    "UpstreamHttpError",
    "UpstreamUnreachable",
    "MissingConfiguration",
]
