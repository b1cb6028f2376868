"""Configuration file loading and saving.

The file on disk is camelCase JSON; the model is snake_case.
"""

import json
import os
import re
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import ValidationError

from autocommit.config.schema import Config
from autocommit.errors import ConfigurationError

CONFIG_PATH_ENV = "AUTOCOMMIT_CONFIG"

# Values under these keys are user data, not schema fields
_VERBATIM_KEYS = {"exclude_patterns", "excludePatterns"}


def get_config_path() -> Path:
    override = os.environ.get(CONFIG_PATH_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".autocommit" / "config.json"


def camel_to_snake(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def snake_to_camel(name: str) -> str:
    first, *rest = name.split("_")
    return first + "".join(word.capitalize() for word in rest)


def convert_keys(data: Any) -> Any:
    """Recursively convert camelCase keys to snake_case."""
    if isinstance(data, dict):
        return {
            camel_to_snake(k): (v if k in _VERBATIM_KEYS else convert_keys(v))
            for k, v in data.items()
        }
    if isinstance(data, list):
        return [convert_keys(item) for item in data]
    return data


def convert_to_camel(data: Any) -> Any:
    """Recursively convert snake_case keys to camelCase."""
    if isinstance(data, dict):
        return {
            snake_to_camel(k): (v if k in _VERBATIM_KEYS else convert_to_camel(v))
            for k, v in data.items()
        }
    if isinstance(data, list):
        return [convert_to_camel(item) for item in data]
    return data


def load_config(config_path: Path | None = None) -> Config:
    """
    Load configuration from file, applying environment overrides.

    A missing file yields defaults. Unreadable JSON or values that fail
    validation raise ConfigurationError.
    """
    path = config_path or get_config_path()
    data: dict[str, Any] = {}

    if path.exists():
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Failed to read configuration file {path}: {e}") from e
        if not isinstance(raw, dict):
            raise ConfigurationError(f"Configuration file {path} must contain a JSON object")
        data = convert_keys(raw)
    else:
        logger.debug(f"No config file at {path}, using defaults")

    try:
        return Config(**data)
    except ValidationError as e:
        raise ConfigurationError(f"Configuration validation failed: {e}") from e


def save_config(config: Config, config_path: Path | None = None) -> None:
    path = config_path or get_config_path()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        data = convert_to_camel(config.model_dump())
        path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Failed to save configuration to {path}: {e}") from e
