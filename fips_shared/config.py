"""
Shared configuration management for the FIPS frontend.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="FIPS_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # CMS
    cms_base_url: str = Field(default="http://localhost:1337/api")
    cms_read_api_key: Optional[str] = Field(default=None)
    cms_write_api_key: Optional[str] = Field(default=None)
    cms_timeout_seconds: float = Field(default=30.0, gt=0)

    # Health monitoring
    health_check_ttl_seconds: float = Field(default=15.0, ge=0)
    health_check_timeout_seconds: float = Field(default=10.0, gt=0)

    # Maintenance
    maintenance_mode_enabled: bool = Field(default=False)

    # Response cache
    cache_max_entries: int = Field(default=1000, gt=0)


class FrontendConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str = "frontend"
    port: int = 8000
    host: str = "0.0.0.0"


def get_config(service_name: str = "frontend", port: int = 8000, **overrides) -> FrontendConfig:
    """Get configuration for the frontend service."""
    return FrontendConfig(service_name=service_name, port=port, **overrides)
