"""
Logging setup shared by the CLI and the MCP server.

Console output goes to stderr. A rotating file under ~/.ventwire/logs keeps
the full DEBUG trail of ingestion, including the per-request correlation
IDs the ingest service prefixes to its messages. The file handler is tuned
through the [logging] table of the config file:

    [logging]
    enabled = true
    level = "INFO"
    max_size_mb = 5
    backup_count = 3
"""

import logging
import logging.config
import os
import sys

from pathlib import Path
from typing import Any

from ventwire.constants import (
    DEFAULT_LOG_BACKUP_COUNT,
    DEFAULT_LOG_DIR,
    DEFAULT_LOG_FILE,
    DEFAULT_LOG_MAX_BYTES,
)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Third-party loggers that are too chatty at DEBUG
QUIET_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "mcp", "httpx")

_logging_configured = False


def get_log_path() -> Path:
    """Path of the ventwire log file; the log directory is created on demand."""
    os.makedirs(DEFAULT_LOG_DIR, mode=0o700, exist_ok=True)
    return DEFAULT_LOG_DIR / DEFAULT_LOG_FILE


def _file_settings() -> dict[str, Any]:
    """The [logging] table of the config file, or {} when missing or malformed."""
    try:
        from ventwire.config import load_config

        settings = load_config().get("logging", {})
    except Exception:
        return {}
    return settings if isinstance(settings, dict) else {}


def _file_handler(settings: dict[str, Any]) -> dict[str, Any] | None:
    if not settings.get("enabled", True):
        return None

    level = str(settings.get("level", "DEBUG")).upper()
    if level not in logging.getLevelNamesMapping():
        level = "DEBUG"

    max_size_mb = settings.get("max_size_mb")
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "level": level,
        "formatter": "file",
        "filename": str(get_log_path()),
        "maxBytes": int(max_size_mb * 1024 * 1024) if max_size_mb else DEFAULT_LOG_MAX_BYTES,
        "backupCount": settings.get("backup_count", DEFAULT_LOG_BACKUP_COUNT),
        "encoding": "utf-8",
    }


def _build_logging_config(
    verbose: bool = False,
    console_format: str | None = None,
) -> dict[str, Any]:
    """
    Assemble the dictConfig schema for console and (optional) file logging.

    Args:
        verbose: Console at DEBUG instead of INFO
        console_format: Console format string; defaults to LOG_FORMAT
    """
    handlers: dict[str, Any] = {
        "console": {
            "class": "logging.StreamHandler",
            "level": "DEBUG" if verbose else "INFO",
            "formatter": "console",
            "stream": "ext://sys.stderr",
        }
    }
    file_handler = _file_handler(_file_settings())
    if file_handler is not None:
        handlers["file"] = file_handler

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {"format": console_format or LOG_FORMAT},
            "file": {"format": LOG_FORMAT},
        },
        "handlers": handlers,
        "loggers": {name: {"level": "WARNING"} for name in QUIET_LOGGERS},
        "root": {"level": "DEBUG", "handlers": list(handlers)},
    }


def setup_logging(
    *,
    verbose: bool = False,
    console_format: str | None = None,
) -> None:
    """
    Configure logging once per process; later calls are no-ops.

    Falls back to basicConfig on stderr if the file handler cannot be
    created (e.g. an unwritable home directory).
    """
    global _logging_configured

    if _logging_configured:
        return

    try:
        logging.config.dictConfig(
            _build_logging_config(verbose=verbose, console_format=console_format)
        )
    except Exception as e:
        sys.stderr.write(f"WARNING: Failed to configure logging: {e}\n")
        logging.basicConfig(
            level=logging.DEBUG if verbose else logging.INFO,
            format=console_format or "%(levelname)s: %(message)s",
        )

    _logging_configured = True
