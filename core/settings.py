"""
User settings for node-package-builder.

Settings live in `~/.node-package-builder/settings.json` (the home directory
can be relocated with NODE_PACKAGE_BUILDER_HOME). Every key is optional:

    {
        "cache_dir": "/data/node-runtimes",
        "temp_dir": "/tmp/npb",
        "node_path": "/opt/node/bin/node",
        "npx_path": "/opt/node/bin/npx"
    }

A missing file yields the defaults. Relative paths are resolved against the
home directory.
"""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from constants import (
    CACHE_DIR_NAME,
    DEFAULT_HOME_DIR,
    DEFAULT_TEMP_ROOT,
    HOME_ENV_VAR,
    SETTINGS_FILE_NAME,
)
from core.exceptions import SettingsError

SETTINGS_KEYS = ("cache_dir", "temp_dir", "node_path", "npx_path")


@dataclass(frozen=True)
class Settings:
    home_dir: Path
    cache_dir: Path
    temp_dir: Path
    node_path: Optional[Path] = None
    npx_path: Optional[Path] = None


def get_home_dir() -> Path:
    override = os.environ.get(HOME_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return DEFAULT_HOME_DIR


def get_settings_file(home_dir: Optional[Path] = None) -> Path:
    return (home_dir or get_home_dir()) / SETTINGS_FILE_NAME


def get_config_file(home_dir: Optional[Path] = None) -> dict:
    """
    Read the raw settings file.

    Returns:
        dict: The decoded settings, or an empty dict if the file does not exist.

    Raises:
        SettingsError: If the file cannot be read or is not a JSON object.
    """
    settings_file = get_settings_file(home_dir)
    if not settings_file.exists():
        return {}

    try:
        data = json.loads(settings_file.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise SettingsError(
            message=f"Cannot read settings file {settings_file}: {e}",
            original_exception=e,
        ) from e

    if not isinstance(data, dict):
        raise SettingsError(
            message=f"Settings file {settings_file} must contain a JSON object"
        )
    return data


def _path_setting(data: dict, key: str, home_dir: Path) -> Optional[Path]:
    value = data.get(key)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise SettingsError(message=f"Setting '{key}' must be a path string")
    path = Path(value).expanduser()
    return path if path.is_absolute() else home_dir / path


def load_settings(home_dir: Optional[Path] = None) -> Settings:
    """
    Load settings, filling every missing key with its default.

    Raises:
        SettingsError: If the settings file is unreadable or malformed.
    """
    home = home_dir or get_home_dir()
    data = get_config_file(home)

    return Settings(
        home_dir=home,
        cache_dir=_path_setting(data, "cache_dir", home) or home / CACHE_DIR_NAME,
        temp_dir=_path_setting(data, "temp_dir", home) or DEFAULT_TEMP_ROOT,
        node_path=_path_setting(data, "node_path", home),
        npx_path=_path_setting(data, "npx_path", home),
    )
