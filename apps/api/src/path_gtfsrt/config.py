"""Application configuration via environment variables."""

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "PATH Train GTFS Realtime"
    app_version: str = "0.1.0"
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    log_level: str = "INFO"
    port: int = 8080

    # Update periods
    trip_update_period_sec: float = Field(default=5.0, gt=0)
    alert_update_period_sec: float = Field(default=30.0, gt=0)

    # Upstream timeouts
    timeout_period_sec: float = Field(default=5.0, gt=0)
    alert_timeout_period_sec: float = Field(default=30.0, gt=0)

    # PATH source API
    source_api_base_url: str = Field(
        default="https://path.api.razza.dev/v1/",
        validation_alias=AliasChoices("SOURCE_API_BASE_URL", "PATH_SOURCE_API_URL"),
    )

    # Port Authority Everbridge incidents
    publish_port_authority_alerts: bool = False
    port_authority_base_url: str = "https://www.panynj.gov/"
    port_authority_incidents_endpoint: str = (
        "bin/portauthority/everbridge/incidents?status=All&department=Path"
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
