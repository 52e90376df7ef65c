"""
Frontend service for FIPS.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import httpx
from fastapi import Query
from fastapi.responses import HTMLResponse, JSONResponse

from fips_shared.base_service import BaseService
from fips_shared.config import FrontendConfig
from fips_shared.errors import ValidationError

from .adapters.cms_client import CmsApiClient
from .caching.response_cache import ResponseCache
from .domain.home import build_home_view_model
from .domain.maintenance_gate import MaintenanceGate
from .health.monitor import CmsHealthMonitor

HOME_CACHE_DURATION = timedelta(minutes=5)
CATEGORIES_CACHE_DURATION = timedelta(minutes=15)

MAINTENANCE_PAGE = """<!DOCTYPE html>
<html lang="en">
<head><meta charset="utf-8"><title>Service unavailable</title></head>
<body>
<h1>Sorry, the service is unavailable</h1>
<p>You will be able to use the service later.</p>
</body>
</html>
"""


class FrontendService(BaseService):
    """Frontend service implementation."""

    def __init__(
        self,
        config: Optional[FrontendConfig] = None,
        *,
        cms_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._cms_transport = cms_transport
        super().__init__("frontend", 8000, config=config)

        self._setup_page_routes()
        self._setup_health_routes()
        self._setup_admin_routes()

        # Expose service instance via app state for introspection/testing
        self.app.state.frontend_service = self

    def _setup_components(self):
        self.response_cache = ResponseCache(max_entries=self.config.cache_max_entries)
        self.cms_client = CmsApiClient(
            self.config.cms_base_url,
            self.response_cache,
            read_api_key=self.config.cms_read_api_key,
            write_api_key=self.config.cms_write_api_key,
            timeout=self.config.cms_timeout_seconds,
            metrics=self.metrics,
            transport=self._cms_transport,
        )
        self.health_monitor = CmsHealthMonitor(
            self.config.cms_base_url,
            read_api_key=self.config.cms_read_api_key,
            ttl_seconds=self.config.health_check_ttl_seconds,
            timeout=self.config.health_check_timeout_seconds,
            metrics=self.metrics,
            transport=self._cms_transport,
        )
        self.maintenance_gate = MaintenanceGate(
            self.health_monitor,
            self.is_maintenance_forced,
            metrics=self.metrics,
        )

    def _setup_middleware(self):
        # Registered first so the timing middleware wraps the gate.
        self.app.middleware("http")(self.maintenance_gate.dispatch)
        super()._setup_middleware()

    def is_maintenance_forced(self) -> bool:
        return self.config.maintenance_mode_enabled

    def set_maintenance_mode(self, enabled: bool) -> None:
        self.config.maintenance_mode_enabled = enabled
        self.logger.info("Maintenance mode changed", enabled=enabled)

    async def _health_summary(self):
        is_cms_available = await self.health_monitor.is_available()
        is_maintenance_mode = self.is_maintenance_forced()
        return is_cms_available, is_maintenance_mode, is_cms_available and not is_maintenance_mode

    def _setup_page_routes(self):
        """Set up page routes."""

        @self.app.get("/")
        async def home():
            """Home page counts."""
            view_model = await build_home_view_model(self.cms_client, HOME_CACHE_DURATION)
            return view_model.model_dump()

        @self.app.get("/categories")
        async def categories():
            """Published category types; empty while the CMS is unavailable."""
            category_types = await self.cms_client.get_all_category_types(CATEGORIES_CACHE_DURATION)
            return {
                "available": category_types is not None,
                "category_types": [
                    category_type.model_dump(mode="json") for category_type in category_types or []
                ],
            }

        @self.app.get("/maintenance", response_class=HTMLResponse)
        async def maintenance():
            """Static maintenance page."""
            return HTMLResponse(content=MAINTENANCE_PAGE, headers={"Cache-Control": "no-store"})

    def _setup_health_routes(self):
        """Set up health routes."""

        @self.app.get("/health")
        async def health_check():
            """Overall health: CMS reachable and no forced maintenance."""
            is_cms_available, is_maintenance_mode, is_healthy = await self._health_summary()
            body = {
                "service": self.service_name,
                "status": "Healthy" if is_healthy else "Unhealthy",
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "cms": "Available" if is_cms_available else "Unavailable",
                "maintenance_mode": is_maintenance_mode,
            }
            return JSONResponse(status_code=200 if is_healthy else 503, content=body)

        @self.app.get("/health/live")
        async def liveness():
            """Liveness probe; independent of the CMS."""
            return {
                "status": "Alive",
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "uptime_seconds": round(self.get_uptime(), 3),
            }

        @self.app.get("/health/ready")
        async def readiness():
            """Readiness probe."""
            is_cms_available, is_maintenance_mode, is_ready = await self._health_summary()
            body = {"status": "Ready" if is_ready else "NotReady", "timestamp": datetime.now(timezone.utc).isoformat()}
            if not is_ready:
                body["reason"] = "Maintenance mode" if is_maintenance_mode else "CMS unavailable"
            return JSONResponse(status_code=200 if is_ready else 503, content=body)

        @self.app.get("/health/detailed")
        async def detailed_health():
            """Detailed diagnostics, including a fresh CMS probe."""
            is_cms_available = await self.health_monitor.check_health()
            is_maintenance_mode = self.is_maintenance_forced()
            is_healthy = is_cms_available and not is_maintenance_mode
            body = {
                "status": "Healthy" if is_healthy else "Unhealthy",
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "checks": {
                    "cms": {
                        "available": is_cms_available,
                        "health_check": is_cms_available,
                        "base_url": self.config.cms_base_url,
                        "state": self.health_monitor.state.to_dict(),
                    },
                    "maintenance_mode": {"enabled": is_maintenance_mode},
                    "response_cache": self.response_cache.stats(),
                },
                "application": {
                    "name": "FIPS Frontend",
                    "environment": self.config.env,
                    "version": self.app.version,
                },
            }
            return JSONResponse(status_code=200 if is_healthy else 503, content=body)

        @self.app.get("/api/health")
        async def api_health():
            """Maintenance diagnostics used by the maintenance page."""
            is_cms_available, is_maintenance_mode, is_healthy = await self._health_summary()
            if not is_cms_available:
                reason = "CMS unavailable"
            elif is_maintenance_mode:
                reason = "Configuration maintenance mode enabled"
            else:
                reason = None
            return {
                "status": "healthy" if is_healthy else "unhealthy",
                "cms_available": is_cms_available,
                "maintenance_mode": is_maintenance_mode,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "debug": {
                    "why_maintenance_shown": reason,
                    "cms_base_url": self.config.cms_base_url,
                    "health_check_timeout_seconds": self.config.health_check_timeout_seconds,
                    "health_check_ttl_seconds": self.config.health_check_ttl_seconds,
                },
            }

    def _setup_admin_routes(self):
        """Set up cache and maintenance administration routes."""

        @self.app.get("/admin/cache")
        async def cache_info():
            """Tracked CMS cache entries."""
            entries = self.cms_client.get_cache_info()
            return {"entries": entries, "count": len(entries), "stats": self.response_cache.stats()}

        @self.app.post("/admin/cache/clear")
        async def clear_cache(endpoint: Optional[str] = Query(None)):
            """Clear the whole CMS cache, or the entry for one endpoint."""
            if endpoint is not None:
                if not endpoint.strip() or "://" in endpoint:
                    raise ValidationError(
                        "endpoint must be a CMS path such as 'products'",
                        {"endpoint": endpoint},
                    )
                removed = self.cms_client.clear_cache_for_endpoint(endpoint)
            else:
                removed = self.cms_client.clear_cache()
            return {"cleared": removed, "endpoint": endpoint}

        @self.app.post("/admin/maintenance")
        async def toggle_maintenance(enabled: bool = Query(...)):
            """Force maintenance mode on or off at runtime."""
            self.set_maintenance_mode(enabled)
            return {"maintenance_mode": enabled}


def create_app(config: Optional[FrontendConfig] = None):
    """Create FastAPI application."""
    service = FrontendService(config)
    return service.app


if __name__ == "__main__":
    service = FrontendService()
    service.run()
