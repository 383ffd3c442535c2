"""Retry controller — bounded retries with linear-growth backoff.

Only transport failures (no HTTP response at all) are retried. Any completed
HTTP response, including 429 and 5xx, is final on the first attempt.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Protocol

from .classifier import DEFAULT_LATENCY_THRESHOLD_MS, classify_failure, classify_response
from .models import PollOutcome, ProbeFailure, ProbeResult, Target

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]


class Prober(Protocol):
    async def probe(self, url: str) -> ProbeResult: ...


class RetryController:
    """Runs prober + classifier for one target until a terminal outcome."""

    def __init__(
        self,
        prober: Prober,
        max_retries: int = 2,
        backoff_ms: int = 1_000,
        latency_threshold_ms: int = DEFAULT_LATENCY_THRESHOLD_MS,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self.prober = prober
        self.max_retries = max_retries
        self.backoff_ms = backoff_ms
        self.latency_threshold_ms = latency_threshold_ms
        self._sleep = sleep

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def backoff_schedule(self) -> list[int]:
        """Delays (ms) awaited before retry 1..max_retries."""
        return [n * self.backoff_ms for n in range(1, self.max_retries + 1)]

    async def poll(self, target: Target) -> PollOutcome:
        schedule = self.backoff_schedule()
        attempt = 0
        while True:
            result = await self.prober.probe(target.url)
            if not isinstance(result, ProbeFailure):
                return classify_response(result, self.latency_threshold_ms)

            if attempt >= self.max_retries:
                logger.warning(
                    "%s: giving up after %d attempts (%s)",
                    target.id, attempt + 1, result.kind.value,
                )
                return classify_failure(result)

            delay_ms = schedule[attempt]
            attempt += 1
            logger.warning(
                "%s: %s on attempt %d, retry %d/%d in %dms",
                target.id, result.kind.value, attempt, attempt, self.max_retries, delay_ms,
            )
            await self._sleep(delay_ms / 1000)
