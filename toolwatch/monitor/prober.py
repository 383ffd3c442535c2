"""Endpoint prober — one bounded-time GET against a status endpoint.

Returns a ``ProbeResponse`` for any completed HTTP exchange (whatever its
status code) or a ``ProbeFailure`` tagged with the transport failure kind.
No retries happen here.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time

import httpx

from .models import FailureKind, ProbeFailure, ProbeResponse, ProbeResult

logger = logging.getLogger(__name__)

ACCEPT_HEADER = "application/json, text/html"

_RATE_LIMIT_RE = re.compile(r"\b429\b|rate limit|too many requests", re.IGNORECASE)


def _looks_rate_limited(message: str) -> bool:
    return _RATE_LIMIT_RE.search(message) is not None


class EndpointProber:
    """Async httpx prober with a hard per-attempt deadline."""

    def __init__(
        self,
        timeout_ms: int = 10_000,
        user_agent: str = "toolwatch",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.timeout_ms = timeout_ms
        self._client = httpx.AsyncClient(
            timeout=timeout_ms / 1000,
            follow_redirects=True,
            headers={"User-Agent": user_agent, "Accept": ACCEPT_HEADER},
            transport=transport,
        )

    async def probe(self, url: str) -> ProbeResult:
        """Perform a single GET. Transport errors come back as ProbeFailure."""
        t0 = time.perf_counter()
        try:
            resp = await asyncio.wait_for(
                self._client.get(url), timeout=self.timeout_ms / 1000,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            logger.debug("Probe %s timed out after %dms", url, self.timeout_ms)
            return ProbeFailure(FailureKind.TIMEOUT, "Request timeout")
        except httpx.ConnectError as e:
            logger.debug("Probe %s connection failed: %s", url, e)
            return ProbeFailure(FailureKind.CONNECTION_FAILED, str(e) or "Connection failed")
        except httpx.HTTPError as e:
            message = str(e) or type(e).__name__
            if _looks_rate_limited(message):
                return ProbeFailure(FailureKind.RATE_LIMITED, message)
            logger.debug("Probe %s transport error: %s", url, message)
            return ProbeFailure(FailureKind.OTHER, message)

        elapsed = int((time.perf_counter() - t0) * 1000)
        return ProbeResponse(status_code=resp.status_code, body=resp.text, elapsed_ms=elapsed)

    async def aclose(self) -> None:
        await self._client.aclose()
