"""
Process settings using Pydantic.

Tunables that are not part of the YAML document, loaded from the environment
with the CARDINALITY_ANALYZER_ prefix.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CARDINALITY_ANALYZER_",
        extra="ignore",
    )

    # Logging
    log_level: str = "INFO"

    # Scheduling
    default_interval_seconds: float = 86400.0
    failure_backoff_seconds: float = 120.0

    # Mimir
    top_metrics_limit: int = 100

    # External analyzer
    mimirtool_path: str = "mimirtool"
    external_timeout: float | None = None

    # Upstream HTTP (None disables the timeout)
    http_timeout: float | None = None


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
