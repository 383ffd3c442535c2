"""Shared test fixtures: fake prober, fake sleep, sample targets."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import pytest

from toolwatch.monitor.models import (
    FailureKind,
    ProbeFailure,
    ProbeResponse,
    ProbeResult,
    Target,
)


def status_body(indicator: str | None = "none", description: str | None = None) -> str:
    """Statuspage-style JSON body."""
    status: dict[str, Any] = {}
    if indicator is not None:
        status["indicator"] = indicator
    if description is not None:
        status["description"] = description
    return json.dumps({"page": {"id": "x"}, "status": status})


def ok(indicator: str | None = "none", elapsed_ms: int = 100, description: str | None = None) -> ProbeResponse:
    return ProbeResponse(200, status_body(indicator, description), elapsed_ms)


def fail(kind: FailureKind = FailureKind.CONNECTION_FAILED, message: str = "") -> ProbeFailure:
    return ProbeFailure(kind, message)


class FakeProber:
    """Scripted prober.

    ``script`` maps url -> list of results (or exceptions) consumed in order;
    the last entry repeats once the list is exhausted.
    """

    def __init__(self, script: dict[str, list[Any]] | None = None,
                 default: ProbeResult | None = None,
                 events: list[str] | None = None) -> None:
        self.script = {k: list(v) for k, v in (script or {}).items()}
        self.default = default or ok()
        self.calls: list[str] = []
        self.events = events if events is not None else []
        self.in_flight = 0
        self.max_in_flight = 0

    async def probe(self, url: str) -> ProbeResult:
        self.calls.append(url)
        self.events.append(f"probe {url}")
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            queue = self.script.get(url)
            if not queue:
                result: Any = self.default
            elif len(queue) == 1:
                result = queue[0]
            else:
                result = queue.pop(0)
            if isinstance(result, BaseException):
                raise result
            return result
        finally:
            self.in_flight -= 1


class FakeSleep:
    """Records requested delays (seconds) without waiting."""

    def __init__(self, events: list[str] | None = None) -> None:
        self.delays: list[float] = []
        self.events = events if events is not None else []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
        self.events.append(f"sleep {seconds}")
        await asyncio.sleep(0)


@pytest.fixture
def targets() -> tuple[Target, ...]:
    return (
        Target("alpha", "Alpha", "https://alpha.test/api/v2/status.json"),
        Target("beta", "Beta", "https://beta.test/api/v2/status.json"),
        Target("gamma", "Gamma", "https://gamma.test/api/v2/status.json"),
    )
