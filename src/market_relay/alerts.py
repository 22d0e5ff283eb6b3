from __future__ import annotations

import hashlib
import logging
import time
from dataclasses import dataclass
from typing import Sequence

from .cache import Clock
from .observability import record_alert
from .services.risk import RiskService
from .services._common import to_epoch_ms

ALERTABLE_LEVELS = frozenset({"WARN", "DANGER"})


def alert_key(level: str, reasons: Sequence[str]) -> str:
    raw = f"{level}:{'|'.join(reasons)}"
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


class AlertCooldownTracker:
    """
    Rate limiter for risk alerts keyed by level and reason list.

    Records are dropped once their cooldown has elapsed, so the map only ever
    holds alerts that are still suppressing repeats.
    """

    def __init__(self, cooldown_seconds: float = 600.0) -> None:
        self._cooldown_seconds = cooldown_seconds
        self._last_alerts: dict[str, float] = {}

    @property
    def cooldown_seconds(self) -> float:
        return self._cooldown_seconds

    def __len__(self) -> int:
        return len(self._last_alerts)

    def should_alert(self, level: str, reasons: Sequence[str], now: float) -> bool:
        if level not in ALERTABLE_LEVELS:
            return False
        self.sweep(now)
        key = alert_key(level, reasons)
        last = self._last_alerts.get(key)
        if last is not None and now - last < self._cooldown_seconds:
            return False
        self._last_alerts[key] = now
        return True

    def last_alert(self, level: str, reasons: Sequence[str]) -> float | None:
        return self._last_alerts.get(alert_key(level, reasons))

    def sweep(self, now: float) -> int:
        expired = [key for key, ts in self._last_alerts.items() if now - ts >= self._cooldown_seconds]
        for key in expired:
            del self._last_alerts[key]
        return len(expired)

    def reset(self) -> None:
        self._last_alerts.clear()


@dataclass(slots=True)
class AlertCheckResult:
    ok: bool
    alerted: bool = False
    last_alert_ts: float | None = None
    error: str | None = None

    def as_dict(self) -> dict[str, object]:
        if not self.ok:
            return {"ok": False, "error": self.error or "Server error"}
        payload: dict[str, object] = {"ok": True, "alerted": self.alerted}
        if self.last_alert_ts is not None:
            payload["lastAlertTs"] = to_epoch_ms(self.last_alert_ts)
        return payload


class AlertChecker:
    """Reads the current risk snapshot and logs a cooldown-gated alert for WARN/DANGER."""

    def __init__(
        self,
        risk_service: RiskService,
        tracker: AlertCooldownTracker | None = None,
        *,
        clock: Clock | None = None,
    ) -> None:
        self._risk_service = risk_service
        self._tracker = tracker or AlertCooldownTracker()
        self._clock = clock or time.time
        self._logger = logging.getLogger("market_relay.alerts")

    @property
    def tracker(self) -> AlertCooldownTracker:
        return self._tracker

    async def check(self) -> AlertCheckResult:
        try:
            result = await self._risk_service.get()
            state = result.value
        except Exception as exc:
            self._logger.error("Alert check failed: %s", exc)
            return AlertCheckResult(ok=False, error=str(exc) or type(exc).__name__)

        level = state.risk.level
        reasons = list(state.risk.reasons)
        if level not in ALERTABLE_LEVELS:
            return AlertCheckResult(ok=True, alerted=False)

        now = self._clock()
        if self._tracker.should_alert(level, reasons, now):
            self._logger.warning(
                "[ALERT] level=%s funding=%s oi=%s reasons=%s",
                level,
                state.funding_rate,
                state.open_interest,
                ";".join(reasons),
            )
            record_alert(level)
            return AlertCheckResult(ok=True, alerted=True, last_alert_ts=now)
        return AlertCheckResult(ok=True, alerted=False, last_alert_ts=self._tracker.last_alert(level, reasons))


__all__ = [
    "ALERTABLE_LEVELS",
    "AlertCheckResult",
    "AlertChecker",
    "AlertCooldownTracker",
    "alert_key",
]
