"""
Configuration persistence for bbw.

The config file is a flat YAML mapping with the cached Bitwarden email,
master password and session token. It lives under ~/.config/bbw/ and is
created empty on first run.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

import yaml


logger = logging.getLogger(__name__)

CONFIG_FIELDS = ("email", "password", "session")


class ConfigError(Exception):
    """Raised when the config file cannot be read or written."""


@dataclass
class Config:
    """Cached credentials and session."""

    email: str = ""
    password: str = ""
    session: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "Config":
        values = {}
        for field in CONFIG_FIELDS:
            value = data.get(field)
            values[field] = "" if value is None else str(value)
        return cls(**values)

    def to_dict(self) -> dict:
        return {field: getattr(self, field) for field in CONFIG_FIELDS}


def default_config_path() -> str:
    """Return the default config file path (~/.config/bbw/config.yaml)."""
    return os.path.join(os.path.expanduser("~"), ".config", "bbw", "config.yaml")


def _ensure_config_file(path: str) -> None:
    config_dir = os.path.dirname(path)
    if config_dir:
        os.makedirs(config_dir, mode=0o700, exist_ok=True)
    if not os.path.exists(path):
        with open(path, 'w', encoding='utf-8'):
            pass
        os.chmod(path, 0o600)
        logger.debug("Created empty config file at %s", path)


def load_config(path: Optional[str] = None) -> Config:
    """Load the config, creating an empty file if there is none.

    Args:
        path: Config file path, defaults to default_config_path()

    Returns:
        The loaded Config (empty fields for anything not set)

    Raises:
        ConfigError: If the file cannot be created, read or parsed
    """
    path = path or default_config_path()
    try:
        _ensure_config_file(path)
    except OSError as e:
        raise ConfigError(f"failed to create config file: {e}") from e

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"failed to read config: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"failed to read config: {path} is not a mapping")

    logger.debug("Loaded config from %s (session cached: %s)", path, bool(data.get("session")))
    return Config.from_dict(data)


def save_config(config: Config, path: Optional[str] = None) -> None:
    """Write the config back to disk, readable by the owner only.

    Raises:
        ConfigError: If the file cannot be written
    """
    path = path or default_config_path()
    try:
        _ensure_config_file(path)
        with open(path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(config.to_dict(), f, default_flow_style=False)
        os.chmod(path, 0o600)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"failed to save config: {e}") from e
    logger.debug("Saved config to %s", path)
