from __future__ import annotations

from typing import Any

import yaml


class ConfigError(Exception):
    """The configuration file is missing or is not valid YAML."""


def load_config(config_file: str | None) -> dict:
    """
    Load configuration settings from a YAML file.

    The file is optional for this tool: with no path, an empty configuration
    is returned and every setting falls back to its CLI flag or default.

    Args:
        config_file (str | None): The file path to the YAML configuration file.

    Returns:
        dict: The parsed configuration (an empty file yields {}).

    Raises:
        ConfigError: If the file is not found, can't be parsed, or isn't a mapping.

    Example Usage:
        config = load_config("config.yaml")
        pds_url = get_setting(config, "bluesky", "pds_url", "https://bsky.social")
    """
    if not config_file:
        return {}

    try:
        with open(config_file, encoding="utf-8") as file:
            config = yaml.safe_load(file)
    except FileNotFoundError:
        raise ConfigError(f"Configuration file {config_file} not found.")
    except yaml.YAMLError as e:
        raise ConfigError(f"Error parsing YAML file: {e}")

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigError(f"Configuration file {config_file} must contain a mapping.")
    return config


def get_setting(config: dict, section: str, key: str, default: Any = None) -> Any:
    """Read config[section][key], tolerating missing or empty sections."""
    value = (config.get(section) or {}).get(key)
    return default if value is None else value
