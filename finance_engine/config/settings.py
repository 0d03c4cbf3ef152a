"""
Configuration Management for Finance Engine

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All tunables of the engine live here (decimal precision,
presentation rounding, the payoff simulation cap, retry policy of the
storage collaborator) so a deployment can see and override them in one
place.
"""

from functools import cached_property, lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """Numeric behaviour of the computation engine."""

    model_config = SettingsConfigDict(
        env_prefix="FINANCE_ENGINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    decimal_precision: int = Field(
        default=34,
        ge=28,
        le=100,
        description="Significant digits of the decimal context used for all computation"
    )
    money_places: int = Field(
        default=2,
        ge=0,
        le=8,
        description="Minor-unit precision applied when presenting money"
    )
    payoff_max_periods: int = Field(
        default=1000,
        ge=1,
        description="Iteration cap of the period-by-period payoff simulation"
    )
    budget_warning_percent: int = Field(
        default=80,
        ge=0,
        le=100,
        description="Share of a budget used above which it is flagged as a warning"
    )


class StorageSettings(BaseSettings):
    """Retry policy for the record storage collaborator."""

    model_config = SettingsConfigDict(
        env_prefix="FINANCE_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts per storage write before giving up"
    )
    retry_wait_min: float = Field(
        default=2.0,
        ge=0.0,
        description="Minimum back-off between attempts (seconds)"
    )
    retry_wait_max: float = Field(
        default=10.0,
        ge=0.0,
        description="Maximum back-off between attempts (seconds)"
    )

    @model_validator(mode='after')
    def validate_wait_window(self) -> 'StorageSettings':
        if self.retry_wait_max < self.retry_wait_min:
            raise ValueError("retry_wait_max cannot be below retry_wait_min")
        return self


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access. Each section is read from
    the environment once per instance; get_settings.cache_clear() reloads.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @cached_property
    def engine(self) -> EngineSettings:
        return EngineSettings()

    @cached_property
    def storage(self) -> StorageSettings:
        return StorageSettings()


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

    Returns a dict of {setting_name: is_valid}, with an extra
    "<name>_error" entry for every section that failed.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.engine
        results["engine"] = True
    except Exception as e:
        results["engine"] = False
        results["engine_error"] = str(e)

    try:
        _ = settings.storage
        results["storage"] = True
    except Exception as e:
        results["storage"] = False
        results["storage_error"] = str(e)

    return results
