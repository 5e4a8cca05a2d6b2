#!/usr/bin/env python3
"""
Centralized Configuration Module using Pydantic Settings

Type-safe, environment-based configuration for the status bot backend.
Every tunable used by the upstream client, the rate limiter, the health
checker and the notification store is declared here.

Architectural Decision: Pydantic Settings for type safety and validation
- Environment variable loading with .env support
- Type validation at startup (fail fast on misconfiguration)
- Grouped read-only views (settings.upstream, settings.health, ...)
"""

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ApplicationSettings(BaseSettings):
    """General application settings."""

    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment"
    )
    APP_NAME: str = Field(default="Status Bot", description="Application name")
    APP_VERSION: str = Field(default="0.6.1", description="Application version")
    API_HOST: str = Field(default="0.0.0.0", description="Status server host")
    API_PORT: int = Field(default=3000, description="Status server port")
    CORS_ORIGINS: list[str] = Field(default=["*"], description="Allowed CORS origins")
    BOT_CLIENT_ID: str | None = Field(default=None, description="Chat application client id")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class LoggingSettings(BaseSettings):
    """
    Logging configuration for structured logging.

    STAGE-L: Logging configuration
    """

    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class UpstreamSettings(BaseSettings):
    """
    Game-status API and resilience defaults.

    STAGE-API: Upstream endpoint configuration

    Timeouts and reset windows are expressed in milliseconds, matching the
    values handed to ApiManager.register_api().
    """

    WARFRAME_API_BASE_URL: str = Field(
        default="https://api.warframestat.us/pc",
        description="Primary game-status endpoint"
    )
    WARFRAME_API_FALLBACK_URLS: list[str] = Field(
        default_factory=list,
        description="Fallback endpoints, tried in order"
    )
    WARFRAME_API_LANGUAGE: str = Field(default="en", description="Language query parameter")
    UPSTREAM_TIMEOUT_MS: int = Field(default=10000, description="Per-attempt timeout")
    UPSTREAM_MAX_RETRIES: int = Field(default=3, description="Retries after the first attempt")
    CB_FAILURE_THRESHOLD: int = Field(default=5, description="Failures before opening circuit")
    CB_RESET_MS: int = Field(default=60000, description="Open-circuit cooldown")
    STATUS_CACHE_TTL_MS: int = Field(default=60000, description="Freshness window for status data")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class RateLimitSettings(BaseSettings):
    """
    Rate limiting policies.

    STAGE-RL: Rate limiting thresholds
    """

    RATE_LIMIT_WINDOW_MS: int = Field(default=60000, description="Window length for all policies")
    RATE_LIMIT_COMMAND: int = Field(default=10, description="Slash commands per window")
    RATE_LIMIT_API: int = Field(default=30, description="HTTP requests per window")
    RATE_LIMIT_STRICT: int = Field(default=3, description="Sensitive actions per window")
    RATE_LIMIT_CLEANUP_INTERVAL_S: float = Field(default=300, description="Expired window sweep")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class HealthSettings(BaseSettings):
    """
    Health check configuration.

    STAGE-H: Health thresholds and scheduling
    """

    HEALTH_CHECK_INTERVAL_S: float = Field(default=300, description="Periodic check interval")
    HEALTH_INITIAL_DELAY_S: float = Field(default=10, description="Delay before first check")
    HEALTH_MEMORY_DEGRADED_PCT: float = Field(default=75, description="Degraded memory usage")
    HEALTH_MEMORY_UNHEALTHY_PCT: float = Field(default=90, description="Unhealthy memory usage")
    HEALTH_PING_DEGRADED_MS: float = Field(default=500, description="Degraded gateway latency")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class StorageSettings(BaseSettings):
    """Local file locations."""

    NOTIFICATIONS_FILE: Path = Field(
        default=Path("bot_notifications.json"),
        description="Guild notification preferences"
    )
    RECOVERY_BASE_DIR: Path = Field(
        default_factory=Path.cwd,
        description="Directory where recovery recreates working folders"
    )

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class Settings(BaseSettings):
    """
    Main settings class that aggregates all configuration sections.

    STAGE-0: Centralized configuration initialization

    Usage:
        from statusbot.core.config.settings import get_settings

        settings = get_settings()
        timeout = settings.upstream.UPSTREAM_TIMEOUT_MS
    """

    # Application
    ENVIRONMENT: Literal["development", "staging", "production"] = Field(default="development")
    APP_NAME: str = Field(default="Status Bot")
    APP_VERSION: str = Field(default="0.6.1")
    API_HOST: str = Field(default="0.0.0.0")
    API_PORT: int = Field(default=3000)
    CORS_ORIGINS: list[str] = Field(default=["*"])
    BOT_CLIENT_ID: str | None = Field(default=None)

    # Logging
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json")

    # Upstream
    WARFRAME_API_BASE_URL: str = Field(default="https://api.warframestat.us/pc")
    WARFRAME_API_FALLBACK_URLS: list[str] = Field(default_factory=list)
    WARFRAME_API_LANGUAGE: str = Field(default="en")
    UPSTREAM_TIMEOUT_MS: int = Field(default=10000, gt=0)
    UPSTREAM_MAX_RETRIES: int = Field(default=3, ge=0)
    CB_FAILURE_THRESHOLD: int = Field(default=5, ge=1)
    CB_RESET_MS: int = Field(default=60000, ge=0)
    STATUS_CACHE_TTL_MS: int = Field(default=60000, ge=0)

    # Rate limiting
    RATE_LIMIT_WINDOW_MS: int = Field(default=60000, gt=0)
    RATE_LIMIT_COMMAND: int = Field(default=10, ge=1)
    RATE_LIMIT_API: int = Field(default=30, ge=1)
    RATE_LIMIT_STRICT: int = Field(default=3, ge=1)
    RATE_LIMIT_CLEANUP_INTERVAL_S: float = Field(default=300, gt=0)

    # Health
    HEALTH_CHECK_INTERVAL_S: float = Field(default=300, gt=0)
    HEALTH_INITIAL_DELAY_S: float = Field(default=10, ge=0)
    HEALTH_MEMORY_DEGRADED_PCT: float = Field(default=75)
    HEALTH_MEMORY_UNHEALTHY_PCT: float = Field(default=90)
    HEALTH_PING_DEGRADED_MS: float = Field(default=500)

    # Storage
    NOTIFICATIONS_FILE: Path = Field(default=Path("bot_notifications.json"))
    RECOVERY_BASE_DIR: Path = Field(default_factory=Path.cwd)

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    @property
    def app(self) -> ApplicationSettings:
        """Get application settings."""
        return ApplicationSettings(
            ENVIRONMENT=self.ENVIRONMENT,
            APP_NAME=self.APP_NAME,
            APP_VERSION=self.APP_VERSION,
            API_HOST=self.API_HOST,
            API_PORT=self.API_PORT,
            CORS_ORIGINS=self.CORS_ORIGINS,
            BOT_CLIENT_ID=self.BOT_CLIENT_ID,
        )

    @property
    def logging(self) -> LoggingSettings:
        """Get logging settings."""
        return LoggingSettings(LOG_LEVEL=self.LOG_LEVEL, LOG_FORMAT=self.LOG_FORMAT)

    @property
    def upstream(self) -> UpstreamSettings:
        """Get upstream API settings."""
        return UpstreamSettings(
            WARFRAME_API_BASE_URL=self.WARFRAME_API_BASE_URL,
            WARFRAME_API_FALLBACK_URLS=self.WARFRAME_API_FALLBACK_URLS,
            WARFRAME_API_LANGUAGE=self.WARFRAME_API_LANGUAGE,
            UPSTREAM_TIMEOUT_MS=self.UPSTREAM_TIMEOUT_MS,
            UPSTREAM_MAX_RETRIES=self.UPSTREAM_MAX_RETRIES,
            CB_FAILURE_THRESHOLD=self.CB_FAILURE_THRESHOLD,
            CB_RESET_MS=self.CB_RESET_MS,
            STATUS_CACHE_TTL_MS=self.STATUS_CACHE_TTL_MS,
        )

    @property
    def rate_limit(self) -> RateLimitSettings:
        """Get rate limit settings."""
        return RateLimitSettings(
            RATE_LIMIT_WINDOW_MS=self.RATE_LIMIT_WINDOW_MS,
            RATE_LIMIT_COMMAND=self.RATE_LIMIT_COMMAND,
            RATE_LIMIT_API=self.RATE_LIMIT_API,
            RATE_LIMIT_STRICT=self.RATE_LIMIT_STRICT,
            RATE_LIMIT_CLEANUP_INTERVAL_S=self.RATE_LIMIT_CLEANUP_INTERVAL_S,
        )

    @property
    def health(self) -> HealthSettings:
        """Get health check settings."""
        return HealthSettings(
            HEALTH_CHECK_INTERVAL_S=self.HEALTH_CHECK_INTERVAL_S,
            HEALTH_INITIAL_DELAY_S=self.HEALTH_INITIAL_DELAY_S,
            HEALTH_MEMORY_DEGRADED_PCT=self.HEALTH_MEMORY_DEGRADED_PCT,
            HEALTH_MEMORY_UNHEALTHY_PCT=self.HEALTH_MEMORY_UNHEALTHY_PCT,
            HEALTH_PING_DEGRADED_MS=self.HEALTH_PING_DEGRADED_MS,
        )

    @property
    def storage(self) -> StorageSettings:
        """Get storage settings."""
        return StorageSettings(
            NOTIFICATIONS_FILE=self.NOTIFICATIONS_FILE,
            RECOVERY_BASE_DIR=self.RECOVERY_BASE_DIR,
        )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )


# Global settings instance (singleton pattern)
_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get the global settings instance (singleton).

    Returns:
        Settings: Global settings instance
    """
    global _settings

    if _settings is None:
        _settings = Settings()

    return _settings


def reload_settings() -> Settings:
    """
    Reload settings (useful for testing).

    Returns:
        Settings: New settings instance
    """
    global _settings
    _settings = Settings()
    return _settings
