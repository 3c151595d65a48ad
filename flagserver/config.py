"""
Application configuration using Pydantic settings.

All configurable values are loaded from environment variables with sensible defaults.
The Unleash defaults point at the production GitLab feature-flag endpoint; override
them via UNLEASH_URL / UNLEASH_INSTANCE_ID / UNLEASH_APP_NAME for other environments.
"""
import logging
from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator

# Get the directory containing this config file (flagserver/)
_PACKAGE_DIR = Path(__file__).parent.resolve()

# Matches Go's http.DefaultMaxHeaderBytes, the platform default for header limits
DEFAULT_MAX_HEADER_BYTES = 1 << 20

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App metadata
    app_name: str = "Flag Server"
    app_version: str = "0.1.0"

    # Logging configuration
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL

    # Listener
    host: str = "0.0.0.0"
    port: int = 3000

    # Unleash flag provider
    unleash_url: str = "https://gitlab.com/api/v4/feature_flags/unleash/53169971"
    unleash_instance_id: str = "9oBgyhUPSdr5GT2Favwb"
    unleash_app_name: str = "Production"  # Running environment of the application
    unleash_refresh_interval: int = 15  # Seconds between toggle fetches
    unleash_disable_metrics: bool = True
    unleash_debug_events: bool = False  # Log every client event at DEBUG
    unleash_ready_timeout_seconds: float = 30.0  # How long startup waits for the first fetch

    # HTTP server timeouts
    read_timeout_seconds: float = 15.0
    write_timeout_seconds: float = 60.0
    idle_timeout_seconds: int = 30  # Keep-alive
    max_header_bytes: int = DEFAULT_MAX_HEADER_BYTES

    # Shutdown
    shutdown_grace_period_seconds: float = 30.0

    model_config = SettingsConfigDict(
        env_file=_PACKAGE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("port")
    @classmethod
    def validate_port(cls, value: int) -> int:
        # 0 asks the OS for an ephemeral port
        if not 0 <= value <= 65535:
            raise ValueError(f"port must be between 0 and 65535, got {value}")
        return value

    @field_validator(
        "read_timeout_seconds",
        "write_timeout_seconds",
        "idle_timeout_seconds",
        "max_header_bytes",
        "shutdown_grace_period_seconds",
        "unleash_refresh_interval",
        "unleash_ready_timeout_seconds",
    )
    @classmethod
    def validate_positive(cls, value):
        if value <= 0:
            raise ValueError("must be greater than zero")
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(_LOG_LEVELS)}")
        return level

    @property
    def numeric_log_level(self) -> int:
        return getattr(logging, self.log_level, logging.INFO)


def get_settings(**overrides) -> Settings:
    """
    Factory function to create Settings instance.

    Useful for testing where you need to override specific values
    without modifying environment variables.

    Args:
        **overrides: Key-value pairs to override default settings

    Returns:
        Settings instance with overrides applied

    Example:
        test_settings = get_settings(port=0, shutdown_grace_period_seconds=1)
    """
    return Settings(**overrides)


# Global settings instance
settings = get_settings()
