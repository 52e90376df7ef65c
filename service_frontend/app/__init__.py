"""
Frontend service package for FIPS.

The frontend serves pages sourced from the headless CMS, guarded by:
- Maintenance gate: 503 + redirect while the CMS is down or maintenance is forced
- CMS health monitor: TTL-cached liveness probe
- Typed CMS client: fail-soft reads/writes with a process-wide response cache

Structure:
- app.main: FastAPI app, routes, and middleware wiring.
- app.adapters: HTTP client for the CMS.
- app.caching: Response cache and key builder.
- app.health: CMS health monitor.
- app.domain: Maintenance gate, DTOs and view models.
"""
