"""Data model shared by the poll engine: targets, verdicts, probe results, records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Union


class Verdict(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    DOWN = "down"
    UNKNOWN = "unknown"


class FailureKind(str, Enum):
    """Transport-level failure categories produced by the prober."""

    TIMEOUT = "timeout"
    CONNECTION_FAILED = "connection_failed"
    RATE_LIMITED = "rate_limited"
    OTHER = "other"


@dataclass(frozen=True)
class Target:
    """One monitored external service."""

    id: str
    name: str
    url: str


# ── Probe results ────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ProbeResponse:
    """A completed HTTP exchange, whatever its status code."""

    status_code: int
    body: str
    elapsed_ms: int


@dataclass(frozen=True)
class ProbeFailure:
    """No HTTP response was obtained."""

    kind: FailureKind
    message: str = ""


ProbeResult = Union[ProbeResponse, ProbeFailure]


# ── Outcomes / records ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class PollOutcome:
    """Terminal classification of one poll (after any retries)."""

    verdict: Verdict
    latency_ms: int | None = None
    error: str | None = None


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class StatusRecord:
    """Latest known state of a target, as served by the query surface."""

    target_id: str
    name: str
    verdict: Verdict = Verdict.UNKNOWN
    latency_ms: int | None = None
    error: str | None = None
    last_checked: datetime = field(default_factory=utcnow)

    @classmethod
    def from_outcome(
        cls, target: Target, outcome: PollOutcome, checked_at: datetime | None = None,
    ) -> StatusRecord:
        return cls(
            target_id=target.id,
            name=target.name,
            verdict=outcome.verdict,
            latency_ms=outcome.latency_ms,
            error=outcome.error,
            last_checked=checked_at or utcnow(),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.target_id,
            "name": self.name,
            "status": self.verdict.value,
            "lastChecked": self.last_checked.isoformat(),
            "latencyMs": self.latency_ms,
        }
        if self.error is not None:
            data["error"] = self.error
        return data
