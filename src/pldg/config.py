"""Configuration management for the PLDG data layer.

Loads source locations, failover order and cache settings from environment
variables using Pydantic. Every field has a default so the package imports
cleanly without a .env file.

Usage:
    from pldg.config import settings

    print(settings.data_base_url)
    print(settings.cache_ttl_ms)
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from pldg.sources.base import SourceType


class Settings(BaseSettings):
    """PLDG data layer configuration from environment variables.

    Loads from .env file automatically. Validates on instantiation.

    Attributes:
        data_base_url: Base URL of the server publishing /data/cohort-N/ files
        data_dir: Local directory holding cohort-N/ folders (overrides data_base_url)
        default_source: Source used before any switch
        default_cohort: Cohort selected at startup
        fallback_order: Order in which sources are tried after the current one fails
        cache_ttl_ms: Maximum age of a cached result, in milliseconds
        attempt_timeout: Upper bound for a single adapter attempt (seconds)
        request_timeout: httpx transport timeout (seconds)
        log_level: Logging verbosity (DEBUG, INFO, WARNING, ERROR)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore unknown env vars
    )

    # Source locations
    data_base_url: str = Field(
        default="http://localhost:3000",
        description="Base URL serving /data/cohort-{id}/{filename}",
    )
    data_dir: str | None = Field(
        default=None,
        description="Read cohort files from this directory instead of over HTTP",
    )

    # Selection defaults
    default_source: SourceType = Field(default=SourceType.CSV, description="Initial data source")
    default_cohort: str = Field(default="2", min_length=1, description="Initially selected cohort")
    fallback_order: list[SourceType] = Field(
        default_factory=lambda: [SourceType.CSV, SourceType.MONGODB, SourceType.STORACHA],
        description="Failover order across sources",
    )

    # Cache + timeouts
    cache_ttl_ms: int = Field(default=300_000, ge=0, description="Cache TTL in milliseconds")
    attempt_timeout: float = Field(default=10.0, gt=0, description="Seconds per adapter attempt")
    request_timeout: float = Field(default=30.0, gt=0, description="HTTP transport timeout")

    # System Settings
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator("fallback_order")
    @classmethod
    def validate_fallback_order(cls, v: list[SourceType]) -> list[SourceType]:
        """Ensure every source appears at most once."""
        if len(set(v)) != len(v):
            raise ValueError(f"fallback_order contains duplicates: {[s.value for s in v]}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid:
            raise ValueError(f"log_level must be one of {valid}, got {v}")
        return v_upper


# Global settings instance, loaded once at import
settings = Settings()
