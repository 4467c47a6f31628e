"""
Shared configuration management for the Access Shield.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="SHIELD_",
        case_sensitive=False,
        extra="allow"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")


class ShieldSettings(BaseConfig):
    """Dispatcher defaults that can be supplied through the environment."""

    allow_external_errors: bool = Field(default=True)
    deny_error_code: Optional[str] = Field(default=None)
    debug: bool = Field(default=False)


@lru_cache(maxsize=1)
def get_settings() -> ShieldSettings:
    """Get the process-wide shield settings."""
    return ShieldSettings()
