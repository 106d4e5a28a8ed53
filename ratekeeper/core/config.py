"""
Configuration management using Pydantic Settings.

Type-safe, validated configuration loaded from environment variables. Rules
themselves are NOT configured here: they come from a ConfigResolver and are
resolved per request. These settings tune the engine around the rules
(store connection, timeouts, retry budget, TTL multiplier).

Architecture:
- Flat Settings structure (no nesting)
- All config loaded from environment variables (prefix RATEKEEPER_)
- Type validation via Pydantic

Usage:
    from ratekeeper.core.config import settings

    timeout = settings.store_timeout_seconds
    if settings.is_production:
        ...
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ratekeeper.core.enums import Environment, StoreBackend
from ratekeeper.domain.enums import CompositionMode


class Settings(BaseSettings):
    """
    Engine settings (flat structure).

    Configuration precedence:
        1. Environment variables
        2. Default values
    """

    # Environment detection
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Runtime environment (development, testing, ci, production)",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    # Backing store
    store_backend: StoreBackend = Field(
        default=StoreBackend.REDIS,
        description="Backing store implementation (redis, memory)",
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL (e.g., redis://host:port/db)",
    )
    store_timeout_ms: float = Field(
        default=5.0,
        description="Timeout for one atomic store call in milliseconds",
    )
    ttl_multiplier: float = Field(
        default=2.0,
        description="Key TTL as a multiple of the rule window",
    )

    # Optimistic CAS retry budget
    cas_max_attempts: int = Field(
        default=5,
        description="Maximum compare-and-swap attempts before giving up",
    )
    cas_backoff_base_ms: float = Field(
        default=1.0,
        description="Base delay for jittered exponential backoff between attempts",
    )
    cas_backoff_max_ms: float = Field(
        default=20.0,
        description="Upper bound for a single backoff delay",
    )

    # Composition and degraded mode
    composition_mode: CompositionMode = Field(
        default=CompositionMode.SHORT_CIRCUIT,
        description="How multiple rules combine (short_circuit, all_or_nothing)",
    )
    degraded_retry_after_seconds: float = Field(
        default=1.0,
        description="Retry-After hint returned by fail-closed rules during outages",
    )
    rule_cache_ttl_seconds: float = Field(
        default=30.0,
        description="How long resolved rules are cached before re-resolution",
    )

    model_config = SettingsConfigDict(
        env_prefix="RATEKEEPER_",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator(
        "store_timeout_ms",
        "cas_backoff_base_ms",
        "cas_backoff_max_ms",
        "rule_cache_ttl_seconds",
    )
    @classmethod
    def validate_positive(cls, v: float) -> float:
        """
        Reject non-positive durations.

        Raises:
            ValueError: If the value is zero or negative.
        """
        if v <= 0:
            raise ValueError("duration settings must be positive")
        return v

    @field_validator("degraded_retry_after_seconds")
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("degraded_retry_after_seconds must not be negative")
        return v

    @field_validator("ttl_multiplier")
    @classmethod
    def validate_ttl_multiplier(cls, v: float) -> float:
        """
        Keys must outlive at least one full window.

        Raises:
            ValueError: If multiplier is below 1.
        """
        if v < 1:
            raise ValueError("ttl_multiplier must be at least 1")
        return v

    @field_validator("cas_max_attempts")
    @classmethod
    def validate_attempts(cls, v: int) -> int:
        if v < 1:
            raise ValueError("cas_max_attempts must be at least 1")
        return v

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """
        Upper-case and validate the log level name.

        Raises:
            ValueError: If the level is not a standard logging level.
        """
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def store_timeout_seconds(self) -> float:
        """Store call timeout converted to seconds."""
        return self.store_timeout_ms / 1000.0

    @property
    def is_development(self) -> bool:
        """
        Check if running in development environment.

        Returns:
            bool: True if environment is DEVELOPMENT, False otherwise.
        """
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_testing(self) -> bool:
        """
        Check if running in testing environment.

        Returns:
            bool: True if environment is TESTING, False otherwise.
        """
        return self.environment == Environment.TESTING

    @property
    def is_production(self) -> bool:
        """
        Check if running in production environment.

        Returns:
            bool: True if environment is PRODUCTION, False otherwise.
        """
        return self.environment == Environment.PRODUCTION


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache so settings are loaded only once per process.

    Returns:
        Settings: Cached settings instance.
    """
    return Settings()


# Global settings instance (singleton pattern)
settings = get_settings()
