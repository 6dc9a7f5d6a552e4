"""Application settings."""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Core configuration for the Reactor Telemetry Service."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = "reactor-telemetry-service"
    env: Literal["development", "staging", "production"] = "development"
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"

    cors_allowed_origins: list[str] = Field(default_factory=list)

    # InfluxDB 2.x connection (read once at startup)
    influx_url: str = "http://localhost:8086"
    influx_token: str = ""
    influx_org: str = ""
    influx_bucket: str = ""

    # Ingest limits
    max_body_bytes: int = 64 * 1024
    # None or 0 keeps every snapshot for the process lifetime
    history_max_entries: int | None = None

    # TSDB forwarding
    tsdb_write_timeout_seconds: float = 5.0
    tsdb_health_timeout_seconds: float = 10.0
    tsdb_drain_timeout_seconds: float = 5.0
    tsdb_ordered_writes: bool = False


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()


settings = get_settings()
