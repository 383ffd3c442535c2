"""Telemetry sink for the poll engine.

Three outputs, all best-effort:
- structured log lines (per-poll events, transitions, incidents, gauges)
- live events for SSE subscribers (bounded queues, slow consumers drop)
- Slack / Telegram alerts when a tool goes down or recovers
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from toolwatch.monitor.models import StatusRecord, Target, Verdict
from toolwatch.telemetry.notify import NotificationManager, NotifyLevel

logger = logging.getLogger(__name__)

__all__ = ["NotificationManager", "NotifyLevel", "Telemetry", "transition_level"]


def transition_level(verdict: Verdict) -> int:
    """Log level for a transition into ``verdict``."""
    if verdict is Verdict.DOWN:
        return logging.ERROR
    if verdict is Verdict.DEGRADED:
        return logging.WARNING
    return logging.INFO


class Telemetry:
    def __init__(self, notifier: NotificationManager | None = None, queue_size: int = 50) -> None:
        self.notifier = notifier or NotificationManager()
        self._queue_size = queue_size
        self._subscribers: list[asyncio.Queue[dict[str, Any]]] = []
        self._pending: set[asyncio.Task[None]] = set()

    # ── Events ───────────────────────────────────────────────────────────

    def record_poll(self, record: StatusRecord) -> None:
        """One event per completed poll, whether or not the verdict changed."""
        logger.info(
            "ToolStatusUpdate tool=%s name=%s status=%s latency_ms=%s has_error=%s",
            record.target_id, record.name, record.verdict.value,
            record.latency_ms if record.latency_ms is not None else 0,
            record.error is not None,
        )
        self._publish({"event": "status", "data": record.to_dict()})

    def log_transition(
        self,
        target: Target,
        previous: Verdict,
        current: Verdict,
        latency_ms: int | None,
    ) -> None:
        logger.log(
            transition_level(current),
            "Tool status changed: %s is now %s (tool=%s old=%s latency_ms=%s)",
            target.name, current.value, target.id, previous.value, latency_ms,
        )
        if previous is Verdict.DOWN and current is Verdict.HEALTHY:
            self._dispatch(self.notifier.notify_recovery(target.id, target.name, current.value))

    def report_incident(
        self,
        target: Target,
        previous: Verdict,
        error: str | None,
        latency_ms: int | None,
    ) -> None:
        """Dedicated incident report for a transition into ``down``."""
        logger.error(
            "ToolDown: Tool %s is down (tool=%s previous=%s latency_ms=%s error=%s)",
            target.name, target.id, previous.value,
            latency_ms if latency_ms is not None else 0, error,
        )
        self._dispatch(
            self.notifier.notify_tool_down(target.id, target.name, previous.value, error)
        )

    def record_counts(self, counts: dict[str, int]) -> None:
        logger.info(
            "Tools status retrieved healthy=%d degraded=%d down=%d total=%d",
            counts.get(Verdict.HEALTHY.value, 0),
            counts.get(Verdict.DEGRADED.value, 0),
            counts.get(Verdict.DOWN.value, 0),
            sum(counts.values()),
        )

    # ── Subscribers ──────────────────────────────────────────────────────

    def subscribe(self) -> asyncio.Queue[dict[str, Any]]:
        queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue(maxsize=self._queue_size)
        self._subscribers.append(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue[dict[str, Any]]) -> None:
        if queue in self._subscribers:
            self._subscribers.remove(queue)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def _publish(self, event: dict[str, Any]) -> None:
        for q in self._subscribers:
            try:
                q.put_nowait(event)
            except asyncio.QueueFull:
                pass  # slow consumer — drop

    # ── Notifications ────────────────────────────────────────────────────

    def _dispatch(self, coro: Any) -> None:
        """Fire-and-forget a notifier coroutine on the running loop."""
        if not self.notifier.is_enabled:
            coro.close()
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            logger.debug("No running loop; incident notification skipped")
            return
        task = loop.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        """Wait for in-flight notifications (used on shutdown and in tests)."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
