from __future__ import annotations

import math
from typing import Any

from .errors import InvalidUpstreamField


def parse_number(raw: Any, label: str) -> float:
    """
    Coerce an untyped upstream JSON field into a finite float.

    Third-party APIs send prices and rates either as numbers or as numeric
    strings; anything else (None, bools, garbage text, NaN, infinities) raises
    InvalidUpstreamField carrying ``label``.
    """

    if isinstance(raw, bool) or raw is None:
        raise InvalidUpstreamField(label, raw)
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            raise InvalidUpstreamField(label, raw)
        try:
            value = float(text)
        except ValueError as exc:
            raise InvalidUpstreamField(label, raw) from exc
    elif isinstance(raw, (int, float)):
        value = float(raw)
    else:
        raise InvalidUpstreamField(label, raw)
    if not math.isfinite(value):
        raise InvalidUpstreamField(label, raw)
    return value


__all__ = ["parse_number"]
