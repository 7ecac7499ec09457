"""Application configuration using Pydantic BaseSettings.

All settings are loaded from environment variables.
No .env files - use AWS Secrets Manager or parameter store.

Usage:
    from src.config import get_settings

    settings = get_settings()
    print(settings.table_name)
    print(settings.telemetry_retention_days)
"""

from enum import StrEnum
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.constants import (
    DEFAULT_RETENTION_DAYS,
    DEFAULT_STATS_WINDOW_HOURS,
    DEFAULT_SUBSCRIBER_QUEUE_SIZE,
    DEFAULT_TELEMETRY_HISTORY_LIMIT,
    DEFAULT_UPCOMING_WINDOW_HOURS,
    SERVICE_NAME,
)


class Environment(StrEnum):
    """Valid deployment environments."""

    DEVELOPMENT = "development"
    TESTING = "testing"
    DEMO = "demo"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Attributes:
        service_name: Name of this service for logging.
        environment: Deployment environment.
        aws_region: AWS region for service calls.
        table_name: DynamoDB table holding drones, missions and telemetry.
        iot_endpoint: AWS IoT Core data endpoint for telemetry forwarding.
        log_level: Logging level.
        upcoming_window_hours: Look-ahead window for upcoming missions.
        stats_window_hours: Default window for telemetry statistics.
        telemetry_retention_days: Age after which telemetry is swept.
        telemetry_history_limit: Default page size for telemetry history.
        subscriber_queue_size: Buffer size of each queue subscriber and of the IoT forwarder.
        enable_iot_forwarding: Whether ingested telemetry is republished to IoT Core.
    """

    model_config = SettingsConfigDict(
        env_file=None,
        case_sensitive=False,
        extra="ignore",
        str_strip_whitespace=True,
    )

    # Service identification
    service_name: str = Field(default=SERVICE_NAME, min_length=1)
    environment: Environment = Field(default=Environment.DEVELOPMENT)

    # AWS Configuration
    aws_region: str = Field(default="us-east-1", min_length=1)
    table_name: str = Field(default="drone-mission-control-development", min_length=1)
    iot_endpoint: str = Field(default="", description="AWS IoT Core endpoint")

    # Logging
    log_level: str = Field(default="INFO")

    # Scheduling and telemetry windows
    upcoming_window_hours: int = Field(default=DEFAULT_UPCOMING_WINDOW_HOURS, ge=1, le=24 * 30)
    stats_window_hours: int = Field(default=DEFAULT_STATS_WINDOW_HOURS, ge=1, le=24 * 30)
    telemetry_retention_days: int = Field(default=DEFAULT_RETENTION_DAYS, ge=1, le=3650)
    telemetry_history_limit: int = Field(default=DEFAULT_TELEMETRY_HISTORY_LIMIT, ge=1, le=1000)

    # Distribution
    subscriber_queue_size: int = Field(default=DEFAULT_SUBSCRIBER_QUEUE_SIZE, ge=1, le=100_000)
    enable_iot_forwarding: bool = Field(default=False)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate log level is one of the allowed values."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_value = value.upper()
        if upper_value not in allowed:
            error_message = f"log_level must be one of {allowed}, got '{value}'"
            raise ValueError(error_message)
        return upper_value

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == Environment.PRODUCTION

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == Environment.DEVELOPMENT


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Cached Settings instance.
    """
    return Settings()


def validate_startup_config() -> Settings:
    """Validate configuration on application startup.

    Returns:
        Validated Settings instance.

    Raises:
        pydantic.ValidationError: If configuration is invalid.
    """
    return get_settings()
