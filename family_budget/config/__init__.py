"""Configuration package."""

from family_budget.config.settings import (
    DEFAULT_DEMO_USER_ID,
    AppSettings,
    DatabaseSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "DEFAULT_DEMO_USER_ID",
    "AppSettings",
    "DatabaseSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
