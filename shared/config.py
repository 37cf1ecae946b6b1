"""
Shared configuration management for the PTS allowance access layer.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="PTS_",
        env_file=".env",
        case_sensitive=False,
        extra="allow"
    )

    # Environment
    env: str = Field(default="local", description="Deployment environment")
    log_level: str = Field(default="info", description="Root log level")
    enable_docs: bool = Field(default=True, description="Expose /docs and /redoc outside local")

    # Seed data
    rules_file: Optional[str] = Field(default=None, description="JSON file with allowance rule records")
    rates_file: Optional[str] = Field(default=None, description="JSON file with allowance rate records")

    # CORS
    cors_origins: str = Field(default="*", description="Comma separated list of allowed origins")

    @property
    def docs_enabled(self) -> bool:
        return self.env == "local" or self.enable_docs

    @property
    def allowed_origins(self) -> list:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"

    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)


def get_config(service_name: str, port: int, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port, **overrides)
