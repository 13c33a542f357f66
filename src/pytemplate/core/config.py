"""
Application configuration management using Pydantic Settings.

Loads configuration from environment variables and .env files.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Application Settings
    # ==========================================================================
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Logging level")
    json_logs: bool = Field(default=False, description="Emit JSON log lines")

    app_name: str = Field(default="PyTemplate", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept any casing for the log level."""
        if isinstance(v, str):
            return v.strip().upper()
        return v

    # ==========================================================================
    # Formula Engine
    # ==========================================================================
    formula_max_length: int = Field(
        default=10000,
        ge=1,
        description="Longest formula string the parser will accept",
    )
    preview_decimal_places: int = Field(
        default=2,
        ge=0,
        le=10,
        description="Decimal places used when rendering preview results",
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


# Global settings instance
settings = get_settings()
