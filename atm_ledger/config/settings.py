"""
Configuration Management for the ATM Ledger

Uses pydantic-settings for type-safe configuration from environment
variables and an optional .env file.

All file locations and limits live here. Nothing else in the package
reads the environment: the store, the validator and the service receive
their settings through their constructors.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Locations of the ledger, user directory and audit trail."""

    model_config = SettingsConfigDict(
        env_prefix="ATM_STORAGE_",
        extra="ignore"
    )

    data_dir: Path = Field(
        default=Path("data"),
        description="Directory holding all store files"
    )
    records_file: str = Field(
        default="records.txt",
        description="Ledger file name, relative to data_dir"
    )
    users_file: str = Field(
        default="users.txt",
        description="User directory file name, relative to data_dir"
    )
    audit_file: Optional[str] = Field(
        default="audit.log",
        description="Audit trail file name; empty to disable"
    )

    @field_validator("audit_file")
    @classmethod
    def empty_audit_file_disables(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @property
    def records_path(self) -> Path:
        return self.data_dir / self.records_file

    @property
    def users_path(self) -> Path:
        return self.data_dir / self.users_file

    @property
    def audit_path(self) -> Optional[Path]:
        if self.audit_file is None:
            return None
        return self.data_dir / self.audit_file


class LimitSettings(BaseSettings):
    """Bounds enforced by the validation rules."""

    model_config = SettingsConfigDict(
        env_prefix="ATM_LIMITS_",
        extra="ignore"
    )

    max_amount: Decimal = Field(
        default=Decimal("1000000000.00"),
        gt=0,
        description="Ceiling for any single amount and for an account balance"
    )
    min_phone_length: int = Field(
        default=7,
        ge=1,
        description="Minimum digits in a phone number"
    )
    max_phone_length: int = Field(
        default=15,
        ge=1,
        le=32,
        description="Maximum digits in a phone number"
    )
    max_country_length: int = Field(
        default=100,
        ge=1,
        description="Maximum length of a country name"
    )


class NotificationSettings(BaseSettings):
    """Out-of-band transfer notifications."""

    model_config = SettingsConfigDict(
        env_prefix="ATM_NOTIFY_",
        extra="ignore"
    )

    enabled: bool = Field(
        default=True,
        description="Send a notification on ownership transfer"
    )
    fifo_path: Path = Field(
        default=Path("/tmp/atm_notifications"),
        description="Named pipe the notifications are written to"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="ATM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    log_level: str = Field(
        default="INFO",
        description="Log level for the ledger loggers"
    )
    json_logs: bool = Field(
        default=True,
        description="Render logs as JSON instead of console key=value pairs"
    )
    log_file: Optional[Path] = Field(
        default=Path("data/ledger.log"),
        description="Log destination; unset to log to stderr"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
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
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def limits(self) -> LimitSettings:
        return LimitSettings()

    @property
    def notifications(self) -> NotificationSettings:
        return NotificationSettings()

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
    Validate all settings groups load from the current environment.

    Returns a dict of {setting_name: is_valid}, with an extra
    "<name>_error" entry for each group that failed.
    """
    results = {}

    settings = get_settings()

    for name in ("storage", "limits", "notifications", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
