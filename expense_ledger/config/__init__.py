"""Configuration package."""

from expense_ledger.config.settings import (
    DEFAULT_SUGGESTED_CATEGORIES,
    AppSettings,
    GoogleSheetsSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "DEFAULT_SUGGESTED_CATEGORIES",
    "AppSettings",
    "GoogleSheetsSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
