"""
User configuration for ventwire, stored as TOML at ~/.ventwire/config.toml.

Tables read by the package:
    [database]  path
    [ingest]    max_save_attempts, retry_backoff_seconds
    [logging]   enabled, level, max_size_mb, backup_count
"""

import logging
import os
import tomllib

from pathlib import Path
from typing import Any

import tomli_w

from ventwire.constants import (
    DEFAULT_DATABASE_PATH,
    DEFAULT_MAX_SAVE_ATTEMPTS,
    DEFAULT_RETRY_BACKOFF_SECONDS,
)

logger = logging.getLogger(__name__)


def get_config_path() -> Path:
    """Location of the config file, resolved against the current home directory."""
    return Path.home() / ".ventwire" / "config.toml"


def load_config() -> dict[str, Any]:
    """
    Read the config file.

    A missing file is an empty config. An unreadable one is also treated
    as empty after logging a warning.
    """
    config_path = get_config_path()
    if not config_path.exists():
        return {}

    try:
        with open(config_path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning(f"Ignoring unreadable config {config_path}: {e}")
        return {}


def save_config(config: dict[str, Any]) -> None:
    """
    Write the whole config, replacing the file atomically.

    Raises:
        PermissionError: If ~/.ventwire cannot be created
    """
    config_path = get_config_path()
    try:
        os.makedirs(config_path.parent, exist_ok=True)
    except PermissionError as e:
        raise PermissionError(
            f"Cannot create config directory {config_path.parent}: {e}"
        ) from e

    temp_path = config_path.with_suffix(".toml.tmp")
    try:
        with open(temp_path, "wb") as f:
            tomli_w.dump(config, f)
        os.replace(temp_path, config_path)
    except Exception:
        temp_path.unlink(missing_ok=True)
        raise


def get_database_path() -> str:
    """Database path from [database].path, or the default location."""
    section = load_config().get("database", {})
    path = section.get("path") if isinstance(section, dict) else None
    if isinstance(path, str) and path:
        return path
    return DEFAULT_DATABASE_PATH


def get_ingest_settings() -> tuple[int, float]:
    """
    Get retry settings for persisting ingested frames.

    Returns:
        Tuple of (max_save_attempts, retry_backoff_seconds). Invalid values
        fall back to the defaults with a warning.
    """
    section = load_config().get("ingest", {})
    if not isinstance(section, dict):
        logger.warning(f"Ignoring [ingest] that is not a table: {section!r}")
        section = {}
    attempts = section.get("max_save_attempts", DEFAULT_MAX_SAVE_ATTEMPTS)
    backoff = section.get("retry_backoff_seconds", DEFAULT_RETRY_BACKOFF_SECONDS)

    if not isinstance(attempts, int) or isinstance(attempts, bool) or attempts < 1:
        logger.warning(
            f"Invalid ingest.max_save_attempts {attempts!r}, "
            f"using {DEFAULT_MAX_SAVE_ATTEMPTS}"
        )
        attempts = DEFAULT_MAX_SAVE_ATTEMPTS

    if not isinstance(backoff, int | float) or isinstance(backoff, bool) or backoff < 0:
        logger.warning(
            f"Invalid ingest.retry_backoff_seconds {backoff!r}, "
            f"using {DEFAULT_RETRY_BACKOFF_SECONDS}"
        )
        backoff = DEFAULT_RETRY_BACKOFF_SECONDS

    return attempts, float(backoff)


def set_config_value(section: str, key: str, value: Any) -> None:
    """
    Set a single value in the config file.

    Args:
        section: Top-level table name (e.g. "ingest")
        key: Key within the table
        value: TOML-serializable value
    """
    config = load_config()
    config.setdefault(section, {})[key] = value
    save_config(config)


def unset_config_value(section: str, key: str) -> None:
    """
    Remove a single value from the config file.

    Empty tables are removed. If config becomes empty, deletes the config file.
    """
    config = load_config()

    if section in config and key in config[section]:
        del config[section][key]

        if not config[section]:
            del config[section]

        if not config:
            config_path = get_config_path()
            if config_path.exists():
                config_path.unlink()
        else:
            save_config(config)
