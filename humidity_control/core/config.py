from __future__ import annotations

import logging
from typing import Optional

from pydantic import Field, ValidationError, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError
from ..domain.models import Thresholds

logger = logging.getLogger(__name__)

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = "Tent Humidity Control"

    # Homebridge UI
    homebridge_host: Optional[str] = None
    homebridge_port: int = 8581
    homebridge_username: Optional[str] = None
    homebridge_password: Optional[str] = None
    homebridge_timeout_seconds: float = 10.0

    # Humidifier (Meross, via homebridge-meross)
    meross_device_id: Optional[str] = None
    meross_key: Optional[str] = None
    meross_accessory_name: Optional[str] = None

    # Sensor (AC Infinity, via homebridge-acinfinity)
    ac_infinity_controller_id: Optional[str] = None
    ac_infinity_access_token: Optional[str] = None
    ac_infinity_accessory_name: Optional[str] = None

    # Control
    target_humidity: float = 62.0
    humidity_tolerance: float = Field(default=3.0, ge=0)
    poll_interval_seconds: int = 60

    # Backups of the Homebridge data directory
    homebridge_data_dir: str = "homebridge"
    backup_dir: str = "backups"
    backup_retention: int = 5
    backup_interval_minutes: float = 0  # 0 disables recurring backups
    backup_on_shutdown: bool = True

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = "humidity-control.log"

    @field_validator("homebridge_port", "poll_interval_seconds", "backup_retention", mode="before")
    @classmethod
    def _positive_int_or_default(cls, value, info: ValidationInfo):
        default = cls.model_fields[info.field_name].default
        try:
            parsed = int(value)
        except (TypeError, ValueError):
            logger.warning("Ignoring invalid %s=%r, using %s", info.field_name, value, default)
            return default
        return parsed if parsed > 0 else default

    @field_validator("backup_interval_minutes", mode="before")
    @classmethod
    def _positive_float_or_default(cls, value, info: ValidationInfo):
        default = cls.model_fields[info.field_name].default
        try:
            parsed = float(value)
        except (TypeError, ValueError):
            logger.warning("Ignoring invalid %s=%r, using %s", info.field_name, value, default)
            return default
        return parsed if parsed > 0 else default

    @field_validator("log_level", mode="before")
    @classmethod
    def _known_log_level(cls, value):
        level = str(value).strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"unknown log level {value!r}, expected one of {', '.join(LOG_LEVELS)}")
        return level

    @field_validator("log_file", mode="before")
    @classmethod
    def _empty_log_file_disables(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def homebridge_base_url(self) -> str:
        return f"http://{self.homebridge_host}:{self.homebridge_port}"

    def thresholds(self) -> Thresholds:
        return Thresholds(
            target_humidity=self.target_humidity,
            tolerance=self.humidity_tolerance,
        )

    def require_hub_credentials(self) -> None:
        missing = [
            env
            for env, value in (
                ("HOMEBRIDGE_HOST", self.homebridge_host),
                ("HOMEBRIDGE_USERNAME", self.homebridge_username),
                ("HOMEBRIDGE_PASSWORD", self.homebridge_password),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(
                f"{', '.join(missing)} required to run the service."
            )

    def summary(self) -> str:
        parts = [
            f"Homebridge host: {self.homebridge_host or 'not set'}",
            f"Homebridge port: {self.homebridge_port}",
            f"Homebridge username: {self.homebridge_username or 'not set'}",
            f"Meross device ID: {mask(self.meross_device_id)}",
            f"Meross key: {mask(self.meross_key)}",
            f"Meross accessory name: {self.meross_accessory_name or 'not set'}",
            f"AC Infinity controller ID: {mask(self.ac_infinity_controller_id)}",
            f"AC Infinity access token: {mask(self.ac_infinity_access_token)}",
            f"AC Infinity accessory name: {self.ac_infinity_accessory_name or 'not set'}",
            f"Target humidity: {self.target_humidity}",
            f"Tolerance: {self.humidity_tolerance}",
            f"Poll interval (s): {self.poll_interval_seconds}",
            f"Homebridge data dir: {self.homebridge_data_dir}",
            f"Backup dir: {self.backup_dir}",
            f"Backup retention: {self.backup_retention}",
            f"Backup interval (min): {self.backup_interval_minutes}",
            f"Backup on shutdown: {self.backup_on_shutdown}",
        ]
        return " | ".join(parts)


def mask(value: Optional[str]) -> str:
    if not value:
        return "not set"
    if len(value) <= 4:
        return "*" * len(value)
    return f"{value[:2]}***{value[-2:]}"


def load_settings(**overrides) -> Settings:
    try:
        return Settings(**overrides)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e
