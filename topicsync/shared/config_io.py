"""Configuration I/O utilities for reading and writing TOML config files.

This module handles serialization/deserialization of TopicSyncConfig to/from TOML format.
"""

import os
import platform
import tomllib  # Built-in Python 3.11+
from dataclasses import asdict
from pathlib import Path
from typing import Any

import tomli_w

from topicsync.domain.config import TopicSyncConfig


def get_global_config_path() -> Path:
    """Get the path to the global config file.

    The location is platform-dependent:
    - Linux/macOS: $XDG_CONFIG_HOME/topicsync/config.toml or ~/.config/topicsync/config.toml
    - Windows: %APPDATA%/topicsync/config.toml

    Returns:
        Path to the global config file (may not exist)
    """
    if platform.system() == "Windows":
        appdata = os.environ.get("APPDATA", "")
        if appdata:
            return Path(appdata) / "topicsync" / "config.toml"
        return Path.home() / ".config" / "topicsync" / "config.toml"
    xdg_config = os.environ.get("XDG_CONFIG_HOME", "")
    if xdg_config:
        return Path(xdg_config) / "topicsync" / "config.toml"
    return Path.home() / ".config" / "topicsync" / "config.toml"


def load_config_data(path: Path) -> dict[str, Any]:
    """Load raw TOML data from a config file.

    Args:
        path: Path to config.toml file

    Returns:
        Dictionary with parsed TOML data

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config file is malformed
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Invalid TOML in config file: {e}") from e


def config_to_data(config: TopicSyncConfig) -> dict[str, Any]:
    """Convert a config to plain section dictionaries."""
    return asdict(config)


def save_config(config: TopicSyncConfig, path: Path) -> None:
    """Save configuration to a TOML file.

    Args:
        config: TopicSyncConfig to save
        path: Destination path for config.toml
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as f:
        tomli_w.dump(config_to_data(config), f)


def create_default_config_file(path: Path, base_url: str | None = None) -> None:
    """Create a default config.toml file with sensible defaults and comments.

    Args:
        path: Destination path for config.toml
        base_url: Backend URL to write (default: built-in default)
    """
    defaults = TopicSyncConfig.default()
    url = base_url or defaults.remote.base_url
    # Template string keeps the comments
    template = f"""\
# topicsync configuration
# Created by: topicsync init

[remote]
# Base URL of the topic backend; resource paths are resolved against it
base_url = {_toml_string(url)}

# Per-request timeout in seconds
timeout = {defaults.remote.timeout}

[auth]
# Names of the environment variables holding your credentials.
# Credentials themselves are never written to this file.
token_env = {_toml_string(defaults.auth.token_env)}
user_id_env = {_toml_string(defaults.auth.user_id_env)}

[store]
# SQLite file inside .topicsync/
filename = {_toml_string(defaults.store.filename)}

[sync]
# Also fetch context responses and their threads on pull
include_responses = false
"""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        f.write(template)


def _toml_string(value: str) -> str:
    return tomli_w.dumps({"v": value}).split("=", 1)[1].strip()
