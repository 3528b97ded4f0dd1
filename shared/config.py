"""
Shared configuration management for the Metrics Aggregation Gateway.
"""

from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="AGGREGATOR_",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    # Environment
    env: str = "local"
    log_level: str = "info"

    # Upstream services, e.g. [{"name": "service1", "url": "http://service1/metrics"}]
    services_list: List[Dict[str, Any]] = Field(
        default_factory=list,
        validation_alias=AliasChoices("AGGREGATOR_SERVICES_LIST", "SERVICESLIST", "services_list"),
    )
    upstream_timeout: Optional[float] = 10.0

    # HTTP surface
    api_prefix: str = "/api/metrics"
    enable_docs: bool = True
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    @field_validator("api_prefix")
    @classmethod
    def _normalize_prefix(cls, value: str) -> str:
        value = value.strip()
        if value and not value.startswith("/"):
            value = "/" + value
        return value


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int = Field(
        default=8020,
        validation_alias=AliasChoices("AGGREGATOR_PORT", "PORT", "port"),
    )
    host: str = "0.0.0.0"


def get_config(service_name: str, port: Optional[int] = None, **overrides: Any) -> ServiceConfig:
    """Get configuration for a specific service."""
    if port is not None:
        overrides["port"] = port
    return ServiceConfig(service_name=service_name, **overrides)
