"""
CMS health monitor.
"""

import asyncio
import time
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Tuple

import httpx

from fips_shared.logging import get_logger
from fips_shared.metrics import MetricsCollector

FALLBACK_PROBE_PARAMS = {"pagination[pageSize]": 1}


@dataclass(frozen=True)
class HealthState:
    """Snapshot of the last known CMS health."""

    is_available: bool = True
    last_checked_at: Optional[datetime] = None
    consecutive_failures: int = 0
    last_error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_available": self.is_available,
            "last_checked_at": self.last_checked_at.isoformat() if self.last_checked_at else None,
            "consecutive_failures": self.consecutive_failures,
            "last_error": self.last_error,
        }


class CmsHealthMonitor:
    """Cheap, cache-backed answer to "is the CMS up?".

    The last probe result is reused for ``ttl_seconds``. When it goes stale,
    one caller probes while concurrent callers wait on the same lock and
    reuse that result, so a struggling CMS sees at most one probe per TTL.
    Probe failures are recorded in the state and never raised.
    """

    def __init__(
        self,
        base_url: str,
        *,
        read_api_key: Optional[str] = None,
        ttl_seconds: float = 15.0,
        timeout: float = 10.0,
        metrics: Optional[MetricsCollector] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.base_url = base_url.rstrip('/')
        self.read_api_key = read_api_key
        self.ttl_seconds = ttl_seconds
        self.timeout = timeout
        self.metrics = metrics
        self._transport = transport
        self._clock = clock
        self._state = HealthState()
        self._checked_at: Optional[float] = None
        self._probe_lock = asyncio.Lock()
        self.logger = get_logger("frontend.cms_health")

    @property
    def state(self) -> HealthState:
        return self._state

    async def is_available(self) -> bool:
        """Return the cached health result, probing only when it is stale."""
        if self._is_fresh():
            return self._state.is_available

        async with self._probe_lock:
            if self._is_fresh():
                return self._state.is_available
            return await self.check_health()

    async def check_health(self) -> bool:
        """Probe the CMS now and record the result."""
        available, error = await self._probe()
        self._record(available, error)
        return available

    def _is_fresh(self) -> bool:
        return self._checked_at is not None and (self._clock() - self._checked_at) < self.ttl_seconds

    def _record(self, available: bool, error: Optional[str]) -> None:
        previous = self._state
        now = datetime.now(timezone.utc)
        if available:
            self._state = HealthState(is_available=True, last_checked_at=now)
            if not previous.is_available:
                self.logger.info("CMS available again", failures_before_recovery=previous.consecutive_failures)
        else:
            self._state = replace(
                previous,
                is_available=False,
                last_checked_at=now,
                consecutive_failures=previous.consecutive_failures + 1,
                last_error=error,
            )
            self.logger.warning(
                "CMS health check failed",
                error=error,
                consecutive_failures=self._state.consecutive_failures,
            )
        self._checked_at = self._clock()

        if self.metrics is not None:
            self.metrics.record_health_probe(available)

    async def _probe(self) -> Tuple[bool, Optional[str]]:
        health_url = f"{self.base_url}/health"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(health_url)
                if response.is_success:
                    self.logger.debug("CMS health check successful")
                    return True, None

                # Not every CMS exposes /health; a minimal content query proves liveness too.
                headers = {"Authorization": f"Bearer {self.read_api_key}"} if self.read_api_key else None
                fallback = await client.get(
                    f"{self.base_url}/products",
                    params=FALLBACK_PROBE_PARAMS,
                    headers=headers,
                )
                if fallback.is_success:
                    self.logger.debug("CMS API test call successful")
                    return True, None

                return False, f"status {response.status_code}, fallback status {fallback.status_code}"
        except httpx.TimeoutException as exc:
            return False, f"timeout: {exc.__class__.__name__}"
        except httpx.HTTPError as exc:
            return False, str(exc) or exc.__class__.__name__
        except Exception as exc:
            self.logger.error("Unexpected error during CMS health check", error=str(exc), exc_info=True)
            return False, f"{exc.__class__.__name__}: {exc}"
