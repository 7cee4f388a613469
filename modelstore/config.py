"""
Configuration management for modelstore.

Loads backend settings from ``MODELSTORE_``-prefixed environment variables
or a ``.env`` file.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Library settings loaded from environment variables.

    All settings can be overridden via environment variables, e.g.
    ``MODELSTORE_REDIS_URL``.
    """

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # Async wrappers
    EXECUTOR_MAX_WORKERS: int = Field(default=1, ge=1)

    # Local cache tier
    CACHE_MAX_SIZE: int = Field(default=1000, ge=1)
    CACHE_TTL_SECONDS: float = Field(default=0, ge=0)

    # File backend
    FILE_STORAGE_PATH: str = "./data"
    FILE_PRETTY_PRINT: bool = False

    # Redis backend
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_EXPIRE_AFTER_SAVE: int = Field(default=0, ge=0)
    REDIS_EXPIRE_AFTER_ACCESS: int = Field(default=0, ge=0)

    # SQL backend
    DATABASE_URL: str = "sqlite:///./modelstore.db"

    model_config = SettingsConfigDict(
        env_prefix="MODELSTORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
