"""
Maintenance gate for the frontend request pipeline.
"""

from enum import Enum
from typing import Callable, Iterable, Optional, Tuple

from fastapi import Request
from fastapi.responses import RedirectResponse
from starlette.responses import Response

from fips_shared.logging import get_logger
from fips_shared.metrics import MetricsCollector

from ..health.monitor import CmsHealthMonitor

MAINTENANCE_PATH = "/maintenance"

# Reachable even during an outage.
EXCLUDED_PREFIXES: Tuple[str, ...] = (
    "/health",
    "/api/health",
    MAINTENANCE_PATH,
    "/css",
    "/js",
    "/images",
    "/static",
    "/metrics",
    "/admin",
    "/favicon.ico",
    "/robots.txt",
)


class GateDecision(str, Enum):
    """Outcome of evaluating one request."""
    PASS = "pass"
    MAINTENANCE = "maintenance"


class MaintenanceGate:
    """Short-circuits requests with a 503 while the CMS is down or maintenance is forced.

    Order of evaluation, per request:

    1. excluded paths always pass;
    2. the forced-maintenance flag wins without probing the CMS;
    3. otherwise the health monitor decides.

    Nothing is sticky: both inputs are read again on every request.
    """

    def __init__(
        self,
        health_monitor: CmsHealthMonitor,
        maintenance_flag: Callable[[], bool],
        *,
        excluded_prefixes: Iterable[str] = EXCLUDED_PREFIXES,
        maintenance_path: str = MAINTENANCE_PATH,
        retry_after_seconds: int = 30,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.health_monitor = health_monitor
        self.maintenance_flag = maintenance_flag
        self.excluded_prefixes = tuple(prefix.lower().rstrip("/") for prefix in excluded_prefixes)
        self.maintenance_path = maintenance_path
        self.retry_after_seconds = retry_after_seconds
        self.metrics = metrics
        self.logger = get_logger("frontend.maintenance_gate")

    def is_excluded(self, path: str) -> bool:
        """True when ``path`` is, or sits under, an excluded prefix (case-insensitive)."""
        path = path.lower()
        return any(path == prefix or path.startswith(prefix + "/") for prefix in self.excluded_prefixes)

    async def evaluate(self, path: str) -> Tuple[GateDecision, Optional[str]]:
        """Decide PASS or MAINTENANCE for ``path``, with the reason for MAINTENANCE."""
        if self.is_excluded(path):
            return GateDecision.PASS, None

        if self.maintenance_flag():
            return GateDecision.MAINTENANCE, "forced"

        if not await self.health_monitor.is_available():
            return GateDecision.MAINTENANCE, "cms_unavailable"

        return GateDecision.PASS, None

    async def dispatch(self, request: Request, call_next) -> Response:
        """HTTP middleware entry point."""
        decision, reason = await self.evaluate(request.url.path)
        if decision is GateDecision.PASS:
            return await call_next(request)

        self.logger.warning(
            "Showing maintenance page",
            path=request.url.path,
            reason=reason,
            consecutive_failures=self.health_monitor.state.consecutive_failures,
        )
        if self.metrics is not None:
            self.metrics.increment_counter("maintenance_responses_total", reason=reason)

        return self.maintenance_response()

    def maintenance_response(self) -> Response:
        return RedirectResponse(
            url=self.maintenance_path,
            status_code=503,
            headers={"Retry-After": str(self.retry_after_seconds), "Cache-Control": "no-store"},
        )
