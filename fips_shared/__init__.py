"""
Shared utilities for the FIPS frontend.

This package aggregates common building blocks consumed by the frontend
service:

- config: Service configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- base_service: FastAPI application scaffolding

Do not import from service_frontend into fips_shared/.
"""
