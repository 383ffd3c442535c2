"""Poll scheduler — serialized sweeps over every target.

One sweep runs immediately on start, then one every ``period_ms``. Targets
are polled strictly one at a time with a pacing pause between them, and
sweeps never overlap: a trigger that arrives mid-sweep waits for it.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime
from typing import TYPE_CHECKING, Any

from .models import PollOutcome, StatusRecord, Target, Verdict, utcnow
from .retry import RetryController
from .store import StatusStore

if TYPE_CHECKING:
    from toolwatch.telemetry import Telemetry

logger = logging.getLogger(__name__)


class PollScheduler:
    def __init__(
        self,
        targets: Sequence[Target],
        store: StatusStore,
        controller: RetryController,
        telemetry: Telemetry,
        pacing_ms: int = 2_000,
        period_ms: int = 300_000,
        timeout_ms: int = 10_000,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.targets = tuple(targets)
        self.store = store
        self.controller = controller
        self.telemetry = telemetry
        self.pacing_ms = pacing_ms
        self.period_ms = period_ms
        self.timeout_ms = timeout_ms
        self._sleep = sleep
        self._clock = clock
        self._sweep_lock = asyncio.Lock()
        self._task: asyncio.Task[None] | None = None
        self._running = False
        # Diagnostics
        self.sweep_count = 0
        self.last_sweep_started: datetime | None = None
        self.last_sweep_duration_ms: int | None = None

    # ── Lifecycle ────────────────────────────────────────────────────────

    async def start(self) -> None:
        """Start the background sweep loop (first sweep runs immediately)."""
        if self._running:
            return
        self._running = True

        bound = self.worst_case_sweep_ms()
        if bound >= self.period_ms:
            logger.warning(
                "Worst-case sweep (%dms for %d targets) is not under the sweep period (%dms); "
                "sweeps will run back to back",
                bound, len(self.targets), self.period_ms,
            )

        self._task = asyncio.create_task(self._sweep_loop(), name="toolwatch-sweeps")
        logger.info(
            "Poll scheduler started: %d targets, period=%ds, pacing=%dms",
            len(self.targets), self.period_ms // 1000, self.pacing_ms,
        )

    async def stop(self) -> None:
        """Stop the loop. An in-flight sweep is abandoned."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Poll scheduler stopped")

    @property
    def running(self) -> bool:
        return self._running

    async def _sweep_loop(self) -> None:
        while self._running:
            started = self._clock()
            try:
                await self.run_sweep()
            except Exception:
                logger.exception("Sweep failed")

            elapsed_ms = (self._clock() - started) * 1000
            if elapsed_ms >= self.period_ms:
                logger.warning(
                    "Sweep took %dms, longer than the %dms period; next sweep starts now",
                    elapsed_ms, self.period_ms,
                )
            await self._sleep(max(0.0, self.period_ms - elapsed_ms) / 1000)

    # ── Sweeps ───────────────────────────────────────────────────────────

    async def run_sweep(self) -> list[StatusRecord]:
        """Poll every target once, in order. Never runs concurrently with itself."""
        async with self._sweep_lock:
            started = self._clock()
            self.last_sweep_started = utcnow()
            records: list[StatusRecord] = []

            for i, target in enumerate(self.targets):
                if i > 0 and self.pacing_ms > 0:
                    await self._sleep(self.pacing_ms / 1000)
                records.append(await self._poll_target(target))

            self.sweep_count += 1
            self.last_sweep_duration_ms = int((self._clock() - started) * 1000)
            logger.debug(
                "Sweep %d finished in %dms", self.sweep_count, self.last_sweep_duration_ms,
            )
            return records

    async def _poll_target(self, target: Target) -> StatusRecord:
        try:
            outcome = await self.controller.poll(target)
        except Exception as e:
            logger.exception("Poll failed for %s", target.id)
            outcome = PollOutcome(Verdict.UNKNOWN, None, str(e) or type(e).__name__)

        record = StatusRecord.from_outcome(target, outcome)
        previous = self.store.replace(record)

        try:
            self._emit(target, previous, record)
        except Exception:
            logger.exception("Telemetry error for %s", target.id)
        return record

    def _emit(self, target: Target, previous: StatusRecord, record: StatusRecord) -> None:
        self.telemetry.record_poll(record)
        if previous.verdict is record.verdict:
            return
        self.telemetry.log_transition(target, previous.verdict, record.verdict, record.latency_ms)
        if record.verdict is Verdict.DOWN:
            self.telemetry.report_incident(
                target, previous.verdict, record.error, record.latency_ms,
            )

    # ── Diagnostics ──────────────────────────────────────────────────────

    def worst_case_sweep_ms(self) -> int:
        """Upper bound on one sweep: every attempt times out, every retry backs off."""
        per_target = (
            self.controller.max_attempts * self.timeout_ms
            + sum(self.controller.backoff_schedule())
        )
        pacing = self.pacing_ms * max(len(self.targets) - 1, 0)
        return per_target * len(self.targets) + pacing

    def status(self) -> dict[str, Any]:
        return {
            "running": self._running,
            "sweeping": self._sweep_lock.locked(),
            "sweep_count": self.sweep_count,
            "last_sweep_started": (
                self.last_sweep_started.isoformat() if self.last_sweep_started else None
            ),
            "last_sweep_duration_ms": self.last_sweep_duration_ms,
            "worst_case_sweep_ms": self.worst_case_sweep_ms(),
            "period_ms": self.period_ms,
        }
