"""Configuration loading: command line > environment > JSON file."""

from __future__ import annotations

import argparse
import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from chat_stats.exceptions import ConfigError

logger = logging.getLogger(__name__)

CHAT_DB_PATH = Path.home() / "Library" / "Messages" / "chat.db"
DEFAULT_CONFIG_FILE = Path("config.json")

ENV_PREFIX = "CHAT_STATS_"

# config.json key -> AnalyticsConfig field
_FILE_KEYS = {
    "debug": "debug",
    "dbPath": "db_path",
    "debugEmail": "debug_email",
    "sentimentSkipAttachments": "sentiment_skip_attachments",
}

_ENV_KEYS = {
    f"{ENV_PREFIX}DEBUG": "debug",
    f"{ENV_PREFIX}DB_PATH": "db_path",
    f"{ENV_PREFIX}DEBUG_EMAIL": "debug_email",
    f"{ENV_PREFIX}SKIP_ATTACHMENTS": "sentiment_skip_attachments",
}

_BOOL_FIELDS = {"debug", "sentiment_skip_attachments"}
_TRUE_STRINGS = {"1", "true", "yes", "on"}


@dataclass
class AnalyticsConfig:
    """Settings for one chat-stats invocation.

    Built once by ``load_config`` and handed to the reader and the CLI.
    """

    debug: bool = False
    db_path: Path | None = None  # only honoured in debug mode
    debug_email: str | None = None
    sentiment_skip_attachments: bool = False

    def resolved_db_path(self) -> Path:
        """Return the database to open: the override in debug mode, else chat.db."""
        if not self.debug:
            return CHAT_DB_PATH
        if self.db_path is None:
            raise ConfigError("debug mode is set but no dbPath was configured")
        return self.db_path


def _coerce(field_name: str, value: Any) -> Any:
    if field_name in _BOOL_FIELDS:
        if isinstance(value, bool):
            return value
        if not isinstance(value, (str, int)):
            raise ConfigError(f"Invalid value for {field_name}: {value!r}")
        return str(value).strip().lower() in _TRUE_STRINGS
    if not isinstance(value, str):
        raise ConfigError(f"Invalid value for {field_name}: {value!r}")
    if field_name == "db_path":
        if not value.strip():
            raise ConfigError("dbPath must not be empty")
        return Path(value).expanduser()
    return value


def _read_config_file(path: Path) -> dict[str, Any]:
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in config file {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a JSON object")

    values: dict[str, Any] = {}
    for key, field_name in _FILE_KEYS.items():
        if data.get(key) is not None:
            values[field_name] = data[key]
    return values


def load_config(
    args: argparse.Namespace | None = None,
    environ: Mapping[str, str] | None = None,
    config_file: Path | None = None,
) -> AnalyticsConfig:
    """Merge file, environment and command-line settings into an AnalyticsConfig.

    Args:
        args: Parsed command-line namespace. Attributes named after config
            fields override everything else when they are not None.
        environ: Environment mapping (defaults to ``os.environ``).
        config_file: JSON file to read. When omitted, ``config.json`` in the
            working directory is used if it exists.

    Returns:
        The merged configuration.
    """
    environ = os.environ if environ is None else environ
    values: dict[str, Any] = {}

    if config_file is not None:
        if not config_file.exists():
            raise ConfigError(f"Config file not found: {config_file}")
        values.update(_read_config_file(config_file))
    elif DEFAULT_CONFIG_FILE.exists():
        values.update(_read_config_file(DEFAULT_CONFIG_FILE))

    for env_key, field_name in _ENV_KEYS.items():
        if env_key in environ:
            values[field_name] = environ[env_key]

    if args is not None:
        for field_name in _FILE_KEYS.values():
            value = getattr(args, field_name, None)
            if value is not None:
                values[field_name] = value

    config = AnalyticsConfig(**{k: _coerce(k, v) for k, v in values.items()})
    logger.debug(f"Loaded config: {config}")
    return config
