"""
Configuration Management for Rental Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Components accept settings explicitly so tests and embedding callers
never depend on the process environment.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerSettings(BaseSettings):
    """Receipt and reporting defaults."""
    
    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        extra="ignore"
    )
    
    due_day: int = Field(
        default=10,
        ge=1,
        le=28,
        description="Day of the billing month a new receipt falls due"
    )
    receipt_number_prefix: str = Field(
        default="REC",
        min_length=1,
        max_length=10,
        description="Prefix for generated receipt numbers"
    )
    no_tenant_placeholder: str = Field(
        default="Sin inquilino",
        description="Tenant label for vacant properties in reports"
    )
    recent_payments_limit: int = Field(
        default=5,
        ge=1,
        le=100,
        description="How many paid receipts the dashboard lists"
    )


class PortabilitySettings(BaseSettings):
    """JSON backup configuration."""
    
    model_config = SettingsConfigDict(
        env_prefix="BACKUP_",
        extra="ignore"
    )
    
    format_version: str = Field(
        default="1.0.0",
        description="Version string written to exported backups"
    )
    file_prefix: str = Field(
        default="alquileres_backup",
        description="File name prefix for backups"
    )
    indent: int = Field(
        default=2,
        ge=0,
        le=8,
    )


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
        description="Minimum log level"
    )
    log_json: bool = Field(
        default=True,
        description="Render logs as JSON (console renderer otherwise)"
    )
    
    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        level = v.upper()
        if level not in allowed:
            raise ValueError(f"Unsupported log level: {v}. Allowed: {sorted(allowed)}")
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
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()
    
    @property
    def portability(self) -> PortabilitySettings:
        return PortabilitySettings()
    
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
    
    Returns a dict of {setting_name: is_valid}, with an extra
    ``<name>_error`` entry for each failing section.
    """
    results = {}
    settings = get_settings()
    
    for name in ("ledger", "portability", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)
    
    return results
