"""Wires the poll engine together from settings.

Used by the API lifespan and by the ``toolwatch sweep`` CLI command.
"""

from __future__ import annotations

from dataclasses import dataclass

import httpx

from toolwatch.config import Settings
from toolwatch.monitor.models import Target
from toolwatch.monitor.prober import EndpointProber
from toolwatch.monitor.registry import TargetRegistry
from toolwatch.monitor.retry import RetryController
from toolwatch.monitor.scheduler import PollScheduler
from toolwatch.monitor.store import StatusStore
from toolwatch.telemetry import NotificationManager, Telemetry


@dataclass
class Engine:
    targets: tuple[Target, ...]
    store: StatusStore
    prober: EndpointProber
    controller: RetryController
    telemetry: Telemetry
    scheduler: PollScheduler

    async def aclose(self) -> None:
        await self.scheduler.stop()
        await self.telemetry.drain()
        await self.prober.aclose()


def build_engine(
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Engine:
    """Build every engine component. Raises RegistryError on a bad target file."""
    targets = TargetRegistry(settings.targets_file).load()
    store = StatusStore(targets)
    prober = EndpointProber(
        timeout_ms=settings.request_timeout_ms,
        user_agent=settings.user_agent,
        transport=transport,
    )
    controller = RetryController(
        prober,
        max_retries=settings.max_retries,
        backoff_ms=settings.retry_backoff_ms,
        latency_threshold_ms=settings.latency_threshold_ms,
    )
    telemetry = Telemetry(
        NotificationManager(
            slack_webhook=settings.slack_webhook_url,
            telegram_token=settings.telegram_bot_token,
            telegram_chat_id=settings.telegram_chat_id,
        )
    )
    scheduler = PollScheduler(
        targets,
        store,
        controller,
        telemetry,
        pacing_ms=settings.pacing_ms,
        period_ms=settings.sweep_period_ms,
        timeout_ms=settings.request_timeout_ms,
    )
    return Engine(targets, store, prober, controller, telemetry, scheduler)
