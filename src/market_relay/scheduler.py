from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Optional

from .alerts import AlertCheckResult


@dataclass(slots=True)
class SchedulerStatus:
    enabled: bool
    is_running: bool
    interval_seconds: float
    last_run_at: datetime | None
    next_run_at: datetime | None
    run_count: int
    consecutive_failures: int
    last_result: dict[str, object] | None

    def as_dict(self) -> dict[str, object]:
        return {
            "enabled": self.enabled,
            "is_running": self.is_running,
            "interval_seconds": self.interval_seconds,
            "last_run_at": self.last_run_at.isoformat() if self.last_run_at else None,
            "next_run_at": self.next_run_at.isoformat() if self.next_run_at else None,
            "run_count": self.run_count,
            "consecutive_failures": self.consecutive_failures,
            "last_result": self.last_result,
        }


class AlertScheduler:
    """
    asyncio loop that runs the alert check at a fixed interval.

    Stands in for the external cron hitting ``/alert-check`` when the relay is
    deployed on its own. Runs are serialized; a failed run (``ok=False``)
    counts towards ``consecutive_failures`` but never stops the loop.
    """

    def __init__(
        self,
        job: Callable[[], Awaitable[AlertCheckResult]],
        *,
        interval: timedelta | None = None,
        enabled: bool = True,
    ) -> None:
        self._job = job
        self._interval = interval or timedelta(minutes=1)
        self._enabled = enabled
        self._is_running = False
        self._last_run_at: datetime | None = None
        self._next_run_at: datetime | None = None
        self._run_count = 0
        self._consecutive_failures = 0
        self._last_result: AlertCheckResult | None = None
        self._loop_task: asyncio.Task[None] | None = None
        self._run_lock = asyncio.Lock()
        self._wake_event = asyncio.Event()
        self._logger = logging.getLogger("market_relay.scheduler")

    @property
    def is_running(self) -> bool:
        return self._is_running

    async def start(self) -> None:
        if not self._enabled or self._is_running:
            return
        self._is_running = True
        self._wake_event.clear()
        self._schedule_next_run()
        if self._loop_task is None or self._loop_task.done():
            self._loop_task = asyncio.create_task(self._run_loop(), name="market-relay-alert-loop")
        self._logger.info("Alert scheduler started (interval %.0fs)", self._interval.total_seconds())

    async def stop(self) -> None:
        self._is_running = False
        self._wake_event.set()
        if self._loop_task and not self._loop_task.done():
            self._loop_task.cancel()
            try:
                await self._loop_task
            except asyncio.CancelledError:  # pragma: no cover - expected cancellation
                pass
        self._loop_task = None
        self._next_run_at = None

    async def trigger_run(self) -> AlertCheckResult:
        result = await self._execute_job(forced_time=datetime.now(timezone.utc))
        if self._is_running:
            # the sleeping loop must pick up the rescheduled run
            self._wake_event.set()
        return result

    def status(self) -> SchedulerStatus:
        return SchedulerStatus(
            enabled=self._enabled,
            is_running=self._is_running,
            interval_seconds=self._interval.total_seconds(),
            last_run_at=self._last_run_at,
            next_run_at=self._next_run_at,
            run_count=self._run_count,
            consecutive_failures=self._consecutive_failures,
            last_result=self._last_result.as_dict() if self._last_result else None,
        )

    async def _run_loop(self) -> None:
        try:
            while self._is_running:
                now = datetime.now(timezone.utc)
                if self._next_run_at is None:
                    self._schedule_next_run()
                wait_seconds = max((self._next_run_at - now).total_seconds(), 0.0)
                try:
                    await asyncio.wait_for(self._wake_event.wait(), timeout=wait_seconds)
                    self._wake_event.clear()
                    continue
                except asyncio.TimeoutError:
                    pass
                if not self._is_running:
                    break
                await self._execute_job()
        except asyncio.CancelledError:  # pragma: no cover - expected during shutdown
            pass

    async def _execute_job(self, *, forced_time: Optional[datetime] = None) -> AlertCheckResult:
        async with self._run_lock:
            start = forced_time or datetime.now(timezone.utc)
            self._last_run_at = start
            self._run_count += 1
            try:
                result = await self._job()
            except Exception as exc:
                self._logger.exception("Alert check job raised: %s", exc)
                result = AlertCheckResult(ok=False, error=str(exc) or type(exc).__name__)
            if result.ok:
                self._consecutive_failures = 0
            else:
                self._consecutive_failures += 1
            self._last_result = result
            if self._is_running:
                self._schedule_next_run(base=start)
            return result

    def _schedule_next_run(self, *, base: Optional[datetime] = None) -> None:
        reference = base or datetime.now(timezone.utc)
        self._next_run_at = reference + self._interval


__all__ = ["AlertScheduler", "SchedulerStatus"]
