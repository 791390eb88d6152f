"""Configuration management for CLIMB."""

import logging
import os
import tomllib

from pathlib import Path
from typing import Any, Literal

import tomli_w

from pydantic import BaseModel, Field, ValidationError, field_validator

from climb.constants import (
    DEFAULT_DATABASE_PATH,
    DEFAULT_DISTRIBUTED_LAG_WINDOW,
    DEFAULT_HOME_DIR,
    DEFAULT_LAG_CORRELATION_WINDOW,
    DEFAULT_LOG_BACKUP_COUNT,
    DEFAULT_LOG_MAX_SIZE_MB,
)

logger = logging.getLogger(__name__)


class AnalysisSettings(BaseModel):
    """Analysis window settings from the [analysis] section."""

    lag_correlation_window: int = Field(
        default=DEFAULT_LAG_CORRELATION_WINDOW,
        ge=0,
        description="Hours swept in each direction for lag correlation",
    )
    distributed_lag_window: int = Field(
        default=DEFAULT_DISTRIBUTED_LAG_WINDOW,
        ge=0,
        description="Hours of history in the distributed-lag regression",
    )


LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LoggingSettings(BaseModel):
    """Log file settings from the [logging] section."""

    enabled: bool = Field(default=True, description="Write the rotating log file")
    level: LogLevel = Field(default="DEBUG", description="Log file level")
    max_size_mb: float = Field(default=DEFAULT_LOG_MAX_SIZE_MB, gt=0)
    backup_count: int = Field(default=DEFAULT_LOG_BACKUP_COUNT, ge=0)

    @field_validator("level", mode="before")
    @classmethod
    def _upper_level(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value

    @property
    def max_bytes(self) -> int:
        return int(self.max_size_mb * 1024 * 1024)


def get_config_path() -> Path:
    """
    Get the path to the configuration file.

    Returns:
        Path to ~/.climb/config.toml
    """
    return DEFAULT_HOME_DIR / "config.toml"


def load_config() -> dict[str, Any]:
    """
    Load configuration from TOML file.

    Returns:
        Configuration dictionary. Returns empty dict if file doesn't exist
        or is corrupted.
    """
    config_path = get_config_path()

    if not config_path.exists():
        return {}

    try:
        with open(config_path, "rb") as f:
            return tomllib.load(f)
    except Exception as e:
        logger.warning(f"Failed to load config from {config_path}: {e}")
        logger.warning("Treating config as empty. Fix or delete the file to resolve.")
        return {}


def save_config(config: dict[str, Any]) -> None:
    """
    Save configuration to TOML file using atomic write.

    Creates the parent directory if it doesn't exist.
    Uses temp file + rename for atomic operation.

    Args:
        config: Configuration dictionary to save

    Raises:
        PermissionError: If directory cannot be created or file cannot be written
    """
    config_path = get_config_path()

    config_dir = config_path.parent
    try:
        os.makedirs(config_dir, exist_ok=True)
    except PermissionError as e:
        raise PermissionError(
            f"Cannot create config directory {config_dir}: {e}"
        ) from e

    temp_path = config_path.with_suffix(".toml.tmp")

    try:
        with open(temp_path, "wb") as f:
            tomli_w.dump(config, f)

        os.replace(temp_path, config_path)

    except Exception:
        if temp_path.exists():
            temp_path.unlink()
        raise


def get_analysis_settings() -> AnalysisSettings:
    """
    Read analysis window settings, falling back to defaults.

    Invalid values are logged and replaced by defaults.
    """
    section = load_config().get("analysis", {})
    try:
        return AnalysisSettings.model_validate(section)
    except ValidationError as e:
        logger.warning(f"Invalid [analysis] config, using defaults: {e}")
        return AnalysisSettings()


def get_logging_settings() -> LoggingSettings:
    """
    Read log file settings, falling back to defaults.

    An invalid [logging] section is logged as a warning and replaced by
    defaults as a whole.
    """
    section = load_config().get("logging", {})
    try:
        return LoggingSettings.model_validate(section)
    except ValidationError as e:
        logger.warning(f"Invalid [logging] config, using defaults: {e}")
        return LoggingSettings()


def get_database_path() -> str:
    """Database path from config, or the default location."""
    path: str | None = load_config().get("database", {}).get("path")
    return path or DEFAULT_DATABASE_PATH


def set_config_value(key: str, value: Any) -> None:
    """
    Set a dotted config key such as "analysis.distributed_lag_window".

    Args:
        key: "<section>.<name>"
        value: Value to store

    Raises:
        ValueError: If the key is not of the form section.name
    """
    section, _, name = key.partition(".")
    if not section or not name:
        raise ValueError(f"Config key must look like 'section.name', got {key!r}")

    config = load_config()
    config.setdefault(section, {})[name] = value
    save_config(config)
