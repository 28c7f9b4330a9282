# burnlink/config.py
"""
Centralized application configuration using pydantic-settings.

All settings are read from environment variables or .env file.
"""

import os
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Priority: environment variables > .env file > defaults
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore unknown env vars
    )

    # --- Database ---
    DB_URL: str = Field(
        default="postgresql://localhost:5432/burnlink",
        description="PostgreSQL connection URL"
    )

    # --- Redis (arq worker broker) ---
    REDIS_URL: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL"
    )

    # --- Server ---
    HOST: str = Field(
        default="127.0.0.1",
        description="Server bind host"
    )
    PORT: int = Field(
        default=8888,
        description="Server bind port"
    )

    # --- Debug / Logging ---
    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    OTEL_ENABLED: bool = Field(
        default=True,
        description="Console-export OpenTelemetry traces"
    )

    # --- Message lifecycle ---
    RETENTION_DAYS: int = Field(
        default=30,
        description="Maximum age of any message, read or not"
    )
    DEFAULT_DELAY_MINUTES: int = Field(
        default=15,
        description="Expiry window used when the requested delay is unknown"
    )
    TOKEN_LENGTH: int = Field(
        default=64,
        description="Length of generated message tokens"
    )
    TOKEN_MAX_ATTEMPTS: int = Field(
        default=5,
        description="Insert attempts before a token collision becomes a storage error"
    )
    TRUST_FORWARDED_FOR: bool = Field(
        default=True,
        description="Derive the reader address from X-Forwarded-For"
    )
    PURGE_TOKEN: Optional[str] = Field(
        default=None,
        description="Shared secret required by /clear when set"
    )

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"LOG_LEVEL must be one of {allowed}")
        return v_upper

    @field_validator("RETENTION_DAYS", "TOKEN_LENGTH", "TOKEN_MAX_ATTEMPTS", "DEFAULT_DELAY_MINUTES")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("value must be positive")
        return v


@lru_cache
def get_settings() -> Settings:
    """Return cached Settings instance (singleton pattern)."""
    return Settings()


# --- Singleton instance for easy import ---
settings = get_settings()


# --- Module-level exports ---

# Database
DATABASE_URL: str = settings.DB_URL

# Server
HOST: str = settings.HOST
PORT: int = settings.PORT
DEBUG: bool = settings.DEBUG
LOG_LEVEL: str = settings.LOG_LEVEL

# Redis
REDIS_URL: str = settings.REDIS_URL

# --- Paths (computed, not from env) ---
PACKAGE_ROOT: str = os.path.abspath(os.path.dirname(__file__))
PROJECT_ROOT: str = os.path.abspath(os.path.join(PACKAGE_ROOT, ".."))
STATIC_PATH: str = os.path.join(PACKAGE_ROOT, "static")
TEMPLATE_PATH: str = os.path.join(PACKAGE_ROOT, "templates")
LOGS_PATH: str = os.path.join(PROJECT_ROOT, "logs")
