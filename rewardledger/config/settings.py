"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str
    database_echo: bool = False

    # Application
    environment: str = "production"
    debug: bool = False
    log_level: str = "INFO"
    log_file: str | None = "logs/rewardledger.log"

    # Calendar day used for quotas, daily caps and daily income
    business_timezone: str = Field(
        default="UTC",
        description="IANA time zone that defines the business day",
    )

    # Versioned business rules (JSON). Built-in defaults when unset.
    rules_file: str | None = None

    # Concurrency
    lock_timeout_seconds: float = Field(
        default=5.0, gt=0, description="Max wait for a per-account lock"
    )
    conflict_max_retries: int = Field(
        default=3, ge=0, le=10,
        description="Transparent retries on store conflicts"
    )
    conflict_retry_delay: float = Field(
        default=0.05, ge=0,
        description="Base backoff in seconds, doubled per attempt"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Database URL must be set."""
        if not v or not v.strip():
            raise ValueError("DATABASE_URL must not be empty")
        return v.strip()

    @field_validator("business_timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Validate IANA time zone name."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown time zone: {v}") from e
        return v

    @model_validator(mode="after")
    def validate_production(self) -> "Settings":
        """Validate production-specific requirements."""
        if self.environment == "production" and self.debug:
            raise ValueError(
                "DEBUG must be False in production environment. "
                "Set DEBUG=false in your .env file."
            )
        return self

    @property
    def tz(self) -> ZoneInfo:
        """Business time zone object."""
        return ZoneInfo(self.business_timezone)


# Global settings instance
settings = Settings()
