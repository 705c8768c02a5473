"""Configuration management for friendlymail.

This module handles application configuration using Pydantic settings.
Configuration can be loaded from environment variables or .env files.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_PACKAGE_DIR = Path(__file__).resolve().parent


class Settings(BaseSettings):
    """Application settings with environment variable support.

    All settings can be overridden via environment variables with
    the FRIENDLYMAIL_ prefix (e.g., FRIENDLYMAIL_HOST_ADDRESS).
    """

    model_config = SettingsConfigDict(
        env_prefix="FRIENDLYMAIL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Host Configuration
    host_address: str = Field(
        default="",
        description="Email address of the host user running the daemon",
    )

    # Reply Configuration
    welcome_template_path: Path = Field(
        default=_PACKAGE_DIR / "templates" / "welcome_template.txt",
        description="Path to the welcome message template",
    )
    post_reference_length: int = Field(
        default=40,
        ge=1,
        description=(
            "Number of characters of a post body encoded into the like and "
            "comment references of a new post notification"
        ),
    )

    # Application Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    max_retries: int = Field(
        default=3,
        description="Maximum number of retries for a failed daemon cycle",
    )
    retry_delay: float = Field(
        default=1.0,
        description="Initial delay between daemon cycle retries in seconds",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings: Application settings instance.
    """
    return Settings()
