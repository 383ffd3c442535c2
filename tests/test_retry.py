"""Tests for the retry controller."""

from __future__ import annotations

import asyncio

from conftest import FakeProber, FakeSleep, fail, ok
from toolwatch.monitor.models import FailureKind, PollOutcome, ProbeResponse, Target, Verdict
from toolwatch.monitor.retry import RetryController

TARGET = Target("alpha", "Alpha", "https://alpha.test/status.json")


def _controller(prober: FakeProber, sleep: FakeSleep, **kw) -> RetryController:
    return RetryController(prober, sleep=sleep, **kw)


class TestBackoffSchedule:
    def test_default_schedule(self) -> None:
        c = RetryController(FakeProber())
        assert c.backoff_schedule() == [1000, 2000]
        assert c.max_attempts == 3

    def test_schedule_strictly_increases(self) -> None:
        c = RetryController(FakeProber(), max_retries=4, backoff_ms=500)
        schedule = c.backoff_schedule()
        assert schedule == [500, 1000, 1500, 2000]
        assert all(a < b for a, b in zip(schedule, schedule[1:]))

    def test_no_retries(self) -> None:
        assert RetryController(FakeProber(), max_retries=0).backoff_schedule() == []


class TestRetryController:
    def test_success_first_attempt(self) -> None:
        prober = FakeProber(default=ok("none", 120))
        sleep = FakeSleep()
        out = asyncio.run(_controller(prober, sleep).poll(TARGET))
        assert out == PollOutcome(Verdict.HEALTHY, 120, None)
        assert len(prober.calls) == 1
        assert sleep.delays == []

    def test_timeout_exhausts_retries(self) -> None:
        prober = FakeProber(default=fail(FailureKind.TIMEOUT))
        sleep = FakeSleep()
        out = asyncio.run(_controller(prober, sleep).poll(TARGET))
        assert out == PollOutcome(Verdict.DOWN, None, "Request timeout")
        assert len(prober.calls) == 3
        assert sleep.delays == [1.0, 2.0]

    def test_backoff_happens_before_retry_not_after_final(self) -> None:
        events: list[str] = []
        prober = FakeProber(default=fail(FailureKind.CONNECTION_FAILED), events=events)
        sleep = FakeSleep(events=events)
        asyncio.run(_controller(prober, sleep).poll(TARGET))
        assert events == [
            f"probe {TARGET.url}",
            "sleep 1.0",
            f"probe {TARGET.url}",
            "sleep 2.0",
            f"probe {TARGET.url}",
        ]

    def test_recovers_on_retry(self) -> None:
        prober = FakeProber({TARGET.url: [fail(FailureKind.TIMEOUT), ok("none", 300)]})
        sleep = FakeSleep()
        out = asyncio.run(_controller(prober, sleep).poll(TARGET))
        assert out == PollOutcome(Verdict.HEALTHY, 300, None)
        assert len(prober.calls) == 2
        assert sleep.delays == [1.0]

    def test_rate_limited_transport_degrades(self) -> None:
        prober = FakeProber(default=fail(FailureKind.RATE_LIMITED, "429 Too Many Requests"))
        sleep = FakeSleep()
        out = asyncio.run(_controller(prober, sleep).poll(TARGET))
        assert out.verdict == Verdict.DEGRADED
        assert out.latency_ms is None
        assert len(prober.calls) == 3

    def test_final_failure_kind_wins(self) -> None:
        prober = FakeProber({TARGET.url: [
            fail(FailureKind.RATE_LIMITED), fail(FailureKind.TIMEOUT), fail(FailureKind.OTHER, "Server disconnected"),
        ]})
        out = asyncio.run(_controller(prober, FakeSleep()).poll(TARGET))
        assert out == PollOutcome(Verdict.DOWN, None, "Server disconnected")

    def test_http_errors_are_not_retried(self) -> None:
        for status in (429, 500, 503, 404):
            prober = FakeProber(default=ProbeResponse(status, "", 40))
            sleep = FakeSleep()
            out = asyncio.run(_controller(prober, sleep).poll(TARGET))
            assert len(prober.calls) == 1, status
            assert sleep.delays == []
            assert out.latency_ms == 40

    def test_parse_failure_not_retried(self) -> None:
        prober = FakeProber(default=ProbeResponse(200, "<html>", 40))
        out = asyncio.run(_controller(prober, FakeSleep()).poll(TARGET))
        assert out.verdict == Verdict.UNKNOWN
        assert len(prober.calls) == 1

    def test_custom_retry_budget(self) -> None:
        prober = FakeProber(default=fail(FailureKind.TIMEOUT))
        sleep = FakeSleep()
        asyncio.run(_controller(prober, sleep, max_retries=1, backoff_ms=250).poll(TARGET))
        assert len(prober.calls) == 2
        assert sleep.delays == [0.25]

    def test_latency_threshold_passed_through(self) -> None:
        prober = FakeProber(default=ok("none", 800))
        out = asyncio.run(_controller(prober, FakeSleep(), latency_threshold_ms=500).poll(TARGET))
        assert out.verdict == Verdict.DEGRADED
