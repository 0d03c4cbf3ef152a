"""Configuration package."""

from finance_engine.config.settings import (
    EngineSettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "EngineSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
    "validate_all_settings",
]
