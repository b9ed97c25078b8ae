"""Configuration module for gitalias.

This module provides access to user configuration stored in one of these locations:
1. $GITALIAS_CONFIG_DIR/gitaliasrc if $GITALIAS_CONFIG_DIR is defined
2. $XDG_CONFIG_HOME/gitalias/gitaliasrc if $XDG_CONFIG_HOME is defined
3. $HOME/.gitaliasrc

The configuration is stored in TOML format.
"""

import copy
import os
from pathlib import Path
from typing import Any

import click
import tomli

__all__ = [
    "DEFAULT_LOG_FORMAT",
    "get_config_path",
    "load_config",
    "get_logger_verbosity",
    "get_logger_path",
    "get_git_executable",
    "get_log_format",
]

DEFAULT_LOG_FORMAT = (
    "%C(yellow)%h %C(reset)-%C(red)%d %C(reset)%s %C(green)(%ar) %C(blue)[%an]"
)

# Default configuration values
DEFAULT_CONFIG = {
    "logger": {
        "verbosity": "INFO",
        "path": str(Path.home() / ".gitalias"),
    },
    "git": {
        "executable": "git",
    },
    "log": {
        "format": DEFAULT_LOG_FORMAT,
    },
}


def get_config_path() -> Path:
    """Return the path to the user's config file.

    Checks the following locations in order:
    1. $GITALIAS_CONFIG_DIR/gitaliasrc if $GITALIAS_CONFIG_DIR is defined
    2. $XDG_CONFIG_HOME/gitalias/gitaliasrc if $XDG_CONFIG_HOME is defined
    3. Fallback to $HOME/.gitaliasrc

    Returns:
        Path to the config file
    """
    if "GITALIAS_CONFIG_DIR" in os.environ:
        path = Path(os.environ["GITALIAS_CONFIG_DIR"]) / "gitaliasrc"
        if path.exists():
            return path

    if "XDG_CONFIG_HOME" in os.environ:
        path = Path(os.environ["XDG_CONFIG_HOME"]) / "gitalias" / "gitaliasrc"
        if path.exists():
            return path

    return Path.home() / ".gitaliasrc"


def load_config() -> dict[str, Any]:
    """Load configuration from the config file.

    Returns:
        Dict containing the merged configuration (defaults + user config).
    """
    config = copy.deepcopy(DEFAULT_CONFIG)
    config_path = get_config_path()

    if config_path.exists():
        try:
            with open(config_path, "rb") as f:
                user_config = tomli.load(f)

            _merge_configs(config, user_config)
        except (OSError, tomli.TOMLDecodeError) as e:
            click.echo(f"Error loading config from {config_path}: {e}", err=True)

    return config


def _merge_configs(base: dict[str, Any], override: dict[str, Any]) -> None:
    """Recursively merge override dict into base dict.

    Args:
        base: The base configuration dictionary to merge into.
        override: The override configuration dictionary to merge from.

    """
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            nested_value: dict[str, Any] = value
            _merge_configs(base[key], nested_value)
        else:
            base[key] = value


def get_logger_verbosity() -> str:
    """Get the configured logger verbosity level.

    Returns:
        String representing the logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).

    """
    config = load_config()
    return config["logger"]["verbosity"]


def get_logger_path() -> str:
    """Get the configured logger path, with ``~`` expanded."""
    config = load_config()
    return os.path.expanduser(config["logger"]["path"])


def get_git_executable() -> str:
    config = load_config()
    return config["git"]["executable"]


def get_log_format() -> str:
    """Get the ``--pretty=format:`` string used by the ``ll`` command."""
    config = load_config()
    return config["log"]["format"]
