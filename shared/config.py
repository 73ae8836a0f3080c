"""
Shared configuration management for the revenue dashboard client.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="DASHBOARD_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Remote API
    api_url: str = Field(default="http://localhost:3001/api")
    request_timeout: float = Field(default=10.0, gt=0)

    # Persisted session (auth token + serialized user)
    session_file: Optional[str] = Field(default=None)


class DashboardSettings(BaseConfig):
    """Client-specific configuration."""

    service_name: str = "dashboard_client"

    # Query cache defaults
    stale_time: float = Field(default=0.0, ge=0)
    gc_time: float = Field(default=600.0, ge=0)

    # Retry policy
    query_retries: int = Field(default=3, ge=0)
    mutation_retries: int = Field(default=2, ge=0)
    retry_base_delay: float = Field(default=1.0, ge=0)
    retry_max_delay: float = Field(default=30.0, ge=0)


def get_settings(**overrides) -> DashboardSettings:
    """Get configuration for the dashboard client."""
    return DashboardSettings(**overrides)
