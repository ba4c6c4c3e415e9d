"""
Configuration Management for Family Budget Tracker

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The database URL and demo data options are the only knobs the
expense core needs, and they are validated once at startup.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_DEMO_USER_ID = "demo-user-0001"


class DatabaseSettings(BaseSettings):
    """Relational store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="DATABASE_",
        extra="ignore"
    )

    url: str = Field(
        default="sqlite+aiosqlite:///./family_budget.db",
        description="SQLAlchemy async database URL"
    )
    echo: bool = Field(
        default=False,
        description="Echo emitted SQL statements"
    )

    @field_validator('url')
    @classmethod
    def validate_async_driver(cls, v: str) -> str:
        """The store runs on SQLAlchemy's asyncio extension, so the URL needs an async driver."""
        if "+" not in v.split("://", 1)[0]:
            raise ValueError(
                f"Database URL must name an async driver (e.g. sqlite+aiosqlite://): {v}"
            )
        return v

    @property
    def is_sqlite_memory(self) -> bool:
        """True for in-memory SQLite URLs, which need a single shared connection."""
        path = self.url.split("://", 1)[-1]
        return self.url.startswith("sqlite") and path in ("", "/:memory:", ":memory:")


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        description="Minimum level for emitted log lines"
    )

    # Storage
    storage_backend: Literal["sql", "memory"] = Field(
        default="sql",
        description="Which expense store to build"
    )

    # Demo data
    demo_user_id: str = Field(
        default=DEFAULT_DEMO_USER_ID,
        min_length=1,
        description="Well-known user id that owns the sample expenses"
    )
    seed_demo_data: bool = Field(
        default=False,
        description="Seed the demo user's expenses at startup"
    )

    @field_validator('log_level')
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def database(self) -> DatabaseSettings:
        return DatabaseSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus
    {setting_name}_error entries for the sections that failed.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.database
        results["database"] = True
    except Exception as e:
        results["database"] = False
        results["database_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
