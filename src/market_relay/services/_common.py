from __future__ import annotations


def to_epoch_ms(seconds: float) -> int:
    return int(round(seconds * 1000))


__all__ = ["to_epoch_ms"]
