"""Core settings via Pydantic Settings."""

from functools import lru_cache
import logging
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Configuration loaded from ``KONNECT_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="KONNECT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Store
    store_backend: Literal["memory", "mongo"] = "memory"
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_database: str = "languagekonnect"
    mongo_timeout_ms: int = Field(default=3000, ge=100, le=60000)
    mongo_fallback_to_memory: bool = Field(
        default=True,
        description="Serve in-memory demo data when MongoDB is unreachable",
    )
    seed_demo_data: bool = False

    # Leaderboards
    leaderboard_limit: int = Field(default=50, ge=1, le=500)

    # Logging
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def configure_logging(level: str | None = None) -> None:
    """Apply ``log_level`` to the package logger for hosts without their own setup."""
    name = (level or get_settings().log_level).upper()
    logging.getLogger("konnect_core").setLevel(getattr(logging, name, logging.INFO))
