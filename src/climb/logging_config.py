"""
Logging setup for the climb command line.

Analysis modules only create module loggers; handlers are installed here,
once per process, from the [logging] section of the config file. The
console shows warnings unless --verbose is given, and everything down to
the configured level goes to a rotating file under ~/.climb/logs.
"""

import logging
import logging.config

from pathlib import Path
from typing import Any

from climb.config import LoggingSettings, get_logging_settings
from climb.constants import DEFAULT_LOG_DIR, DEFAULT_LOG_FILE

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_logging_configured = False


def get_log_path() -> Path:
    """Path of the active log file, creating the log directory if needed."""
    DEFAULT_LOG_DIR.mkdir(mode=0o700, parents=True, exist_ok=True)
    return DEFAULT_LOG_DIR / DEFAULT_LOG_FILE


def _build_logging_config(
    verbose: bool = False, settings: LoggingSettings | None = None
) -> dict[str, Any]:
    """
    Build the dictConfig dictionary.

    Args:
        verbose: Show DEBUG output on the console
        settings: Log file settings; read from the config file when omitted

    Returns:
        Dictionary suitable for logging.config.dictConfig()
    """
    if settings is None:
        settings = get_logging_settings()

    handlers: dict[str, dict[str, Any]] = {
        "console": {
            "class": "logging.StreamHandler",
            "level": "DEBUG" if verbose else "WARNING",
            "formatter": "plain",
            "stream": "ext://sys.stderr",
        },
    }
    if settings.enabled:
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": settings.level,
            "formatter": "plain",
            "filename": str(get_log_path()),
            "maxBytes": settings.max_bytes,
            "backupCount": settings.backup_count,
            "encoding": "utf-8",
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"plain": {"format": LOG_FORMAT}},
        "handlers": handlers,
        "root": {"level": "DEBUG", "handlers": list(handlers)},
    }


def setup_logging(*, verbose: bool = False) -> None:
    """
    Install console and log file handlers.

    Only the first call has an effect. If the log file cannot be opened,
    logging continues on the console alone and a warning says why.

    Args:
        verbose: Show DEBUG output on the console
    """
    global _logging_configured

    if _logging_configured:
        return

    settings = get_logging_settings()
    try:
        logging.config.dictConfig(_build_logging_config(verbose, settings))
    except (OSError, ValueError) as e:
        console_only = settings.model_copy(update={"enabled": False})
        logging.config.dictConfig(_build_logging_config(verbose, console_only))
        logger.warning(f"Log file disabled, cannot open it: {e}")

    _logging_configured = True
