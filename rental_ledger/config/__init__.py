"""Configuration package."""

from rental_ledger.config.settings import (
    AppSettings,
    LedgerSettings,
    PortabilitySettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "LedgerSettings",
    "PortabilitySettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
