"""Result classifier — maps a probe result to a health verdict.

Pure and total over ``ProbeResult``. Order matters: rate limiting and slow
responses are reported as degraded, never as down.
"""

from __future__ import annotations

from pydantic import BaseModel, ValidationError

from .models import FailureKind, PollOutcome, ProbeFailure, ProbeResponse, ProbeResult, Verdict

DEFAULT_LATENCY_THRESHOLD_MS = 2_000

MSG_TIMEOUT = "Request timeout"
MSG_CONNECTION_FAILED = "Connection failed"
MSG_RATE_LIMITED = "Rate limited - too many requests"
MSG_PARSE_FAILED = "Failed to parse status API response"
MSG_DEGRADED_FALLBACK = "Service degraded"


# ── Status-page payload ──────────────────────────────────────────────────────


class StatusBlock(BaseModel):
    indicator: str | None = None
    description: str | None = None


class StatusPagePayload(BaseModel):
    """Subset of the Statuspage ``/api/v2/status.json`` schema we rely on."""

    status: StatusBlock = StatusBlock()


_DEGRADED_INDICATORS = frozenset({"minor", "partial"})
_DOWN_INDICATORS = frozenset({"major", "critical"})


# ── Classification ───────────────────────────────────────────────────────────


def classify_failure(failure: ProbeFailure) -> PollOutcome:
    """Classify a transport failure. Only meaningful once retries are exhausted."""
    if failure.kind is FailureKind.TIMEOUT:
        return PollOutcome(Verdict.DOWN, None, MSG_TIMEOUT)
    if failure.kind is FailureKind.CONNECTION_FAILED:
        return PollOutcome(Verdict.DOWN, None, MSG_CONNECTION_FAILED)
    if failure.kind is FailureKind.RATE_LIMITED:
        return PollOutcome(Verdict.DEGRADED, None, MSG_RATE_LIMITED)
    return PollOutcome(Verdict.DOWN, None, failure.message or "Transport error")


def classify_response(
    response: ProbeResponse,
    latency_threshold_ms: int = DEFAULT_LATENCY_THRESHOLD_MS,
) -> PollOutcome:
    status = response.status_code
    elapsed = response.elapsed_ms

    if 200 <= status < 300:
        try:
            payload = StatusPagePayload.model_validate_json(response.body)
        except ValidationError:
            return PollOutcome(Verdict.UNKNOWN, elapsed, MSG_PARSE_FAILED)
        return _classify_indicator(payload.status, elapsed, latency_threshold_ms)

    if status == 429:
        return PollOutcome(Verdict.DEGRADED, elapsed, MSG_RATE_LIMITED)
    if status >= 500:
        return PollOutcome(Verdict.DOWN, elapsed, f"Server error: {status}")
    return PollOutcome(Verdict.DOWN, elapsed, f"HTTP {status}")


def _classify_indicator(
    block: StatusBlock, elapsed: int, latency_threshold_ms: int,
) -> PollOutcome:
    indicator = (block.indicator or "").strip().lower()

    if indicator in _DEGRADED_INDICATORS:
        return PollOutcome(Verdict.DEGRADED, elapsed, block.description or MSG_DEGRADED_FALLBACK)
    if indicator in _DOWN_INDICATORS:
        return PollOutcome(
            Verdict.DOWN, elapsed, block.description or f"Service status: {indicator}",
        )

    # "none", missing and unrecognized indicators: healthy unless slow
    if elapsed <= latency_threshold_ms:
        return PollOutcome(Verdict.HEALTHY, elapsed, None)
    return PollOutcome(Verdict.DEGRADED, elapsed, f"Elevated latency: {elapsed}ms")


def classify(
    result: ProbeResult,
    latency_threshold_ms: int = DEFAULT_LATENCY_THRESHOLD_MS,
) -> PollOutcome:
    """Map a prober result to a PollOutcome."""
    if isinstance(result, ProbeFailure):
        return classify_failure(result)
    return classify_response(result, latency_threshold_ms)
