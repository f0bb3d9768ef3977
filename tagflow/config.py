#!/usr/bin/env python3

import os
import json
import tomllib
from pathlib import Path

import logging
import sys

import toml
import yaml

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stderr)  # stdout is reserved for key=value output
    ]
)
logger = logging.getLogger("tagflow")

CONFIG_FILENAMES = ['config.json', 'config.toml', 'config.yaml', 'config.yml']


class ConfigError(Exception):
    """Raised when the configuration file cannot be read."""


def get_config_path():
    """Get the path to the configuration file.

    Checks in order:
    1. TAGFLOW_CONFIG environment variable
    2. .tagflow/ in the current directory (per-repository config)
    3. ~/.tagflow/ directory
    """
    if 'TAGFLOW_CONFIG' in os.environ:
        path = Path(os.environ['TAGFLOW_CONFIG'])
        if path.exists():
            return path

    for base in (Path.cwd() / '.tagflow', Path.home() / '.tagflow'):
        for filename in CONFIG_FILENAMES:
            path = base / filename
            if path.exists() and path.stat().st_size > 0:
                return path

    # If no file exists, return default path for saving
    return Path.home() / '.tagflow' / 'config.json'


def get_default_config():
    """Get default configuration."""
    return {
        "tags": {
            "environments": ["production", "staging", "canary", "sandbox", "performance"],
        },
        "remote": {
            "name": "origin",
            "push": True,
        },
        "git": {
            "timeout_seconds": 30,
        },
        "execution": {
            "operation": "tag_assignment",
            "prefix": "CI_TEST",
        },
        "rollback": {
            "prefer_stable": True,
            "exclude_deprecated": True,
        },
        "logging": {
            "level": "INFO",
            "format": "%(levelname)s: %(message)s",
        },
    }


def _read_config_file(config_path: Path) -> dict:
    suffix = config_path.suffix.lower()
    if suffix == '.toml':
        with open(config_path, 'rb') as f:
            return tomllib.load(f)
    if suffix in ('.yaml', '.yml'):
        with open(config_path, 'r') as f:
            return yaml.safe_load(f) or {}
    with open(config_path, 'r') as f:
        return json.load(f)


def load_config():
    """Load configuration from file.

    Raises:
        ConfigError: The file exists but cannot be parsed
    """
    config_path = get_config_path()

    # Start with default config
    config = get_default_config()

    if config_path.exists():
        try:
            file_config = _read_config_file(config_path)
        except (OSError, ValueError, tomllib.TOMLDecodeError, yaml.YAMLError) as e:
            raise ConfigError(f"Error loading config from {config_path}: {e}") from e
        if not isinstance(file_config, dict):
            raise ConfigError(f"Config file {config_path} must contain a mapping")
        config = merge_configs(config, file_config)
        logger.debug(f"Loaded config from {config_path}")

    # Apply environment variable overrides
    return apply_env_overrides(config)


def save_config(config, config_path=None):
    """Save configuration to file, in the format given by its suffix."""
    config_path = Path(config_path) if config_path else get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    suffix = config_path.suffix.lower()
    with open(config_path, 'w') as f:
        if suffix == '.toml':
            toml.dump(config, f)
        elif suffix in ('.yaml', '.yml'):
            yaml.safe_dump(config, f, default_flow_style=False)
        else:
            json.dump(config, f, indent=2)

    logger.info(f"Configuration saved to {config_path}")
    return config_path


def merge_configs(base_config, override_config):
    """
    Recursively merge two configuration dictionaries.

    Args:
        base_config (dict): Base configuration
        override_config (dict): Configuration to merge/override with

    Returns:
        dict: Merged configuration
    """
    merged = base_config.copy()

    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            # Recursively merge nested dictionaries
            merged[key] = merge_configs(merged[key], value)
        else:
            # Override or add new key
            merged[key] = value

    return merged


def apply_env_overrides(config):
    """
    Apply environment variable overrides to configuration.
    Environment variables follow the pattern: TAGFLOW_SECTION_KEY
    For example: TAGFLOW_REMOTE_PUSH=false

    List values are given comma-separated:
    TAGFLOW_TAGS_ENVIRONMENTS=production,staging
    """
    env_prefix = "TAGFLOW_"

    for env_key, value in os.environ.items():
        if not env_key.startswith(env_prefix) or env_key == 'TAGFLOW_CONFIG':
            continue

        key_parts = env_key[len(env_prefix):].lower().split('_')

        current_level = config
        i = 0
        while i < len(key_parts):
            # Find the longest key in current_level that is a prefix of the remaining key_parts
            best_match_len = 0
            matched_key = None

            for config_key in current_level.keys():
                config_key_parts = config_key.split('_')
                if key_parts[i:i + len(config_key_parts)] == config_key_parts:
                    if len(config_key_parts) > best_match_len:
                        best_match_len = len(config_key_parts)
                        matched_key = config_key

            if not matched_key:
                break

            # If we are at the end of the env var, we have found the key to set
            if i + best_match_len == len(key_parts):
                current_level[matched_key] = _convert_value(value, current_level[matched_key])
                break

            # Otherwise, we descend into the dictionary
            if isinstance(current_level[matched_key], dict):
                current_level = current_level[matched_key]
                i += best_match_len
            else:
                break

    return config


def _convert_value(value, existing):
    if isinstance(existing, list):
        return [item.strip() for item in value.split(',') if item.strip()]
    if isinstance(existing, int) and not isinstance(existing, bool) and value.isdigit():
        return int(value)
    if value.lower() in ('true', '1', 'yes', 'on'):
        return True
    if value.lower() in ('false', '0', 'no', 'off'):
        return False
    if value.isdigit():
        return int(value)
    return value


def configure_logging(config, verbose=False):
    """Apply the configured level and format to the tagflow logger."""
    level_name = 'DEBUG' if verbose else str(config.get('logging', {}).get('level', 'INFO'))
    level = getattr(logging, level_name.upper(), logging.INFO)
    logger.setLevel(level)
    fmt = config.get('logging', {}).get('format')
    if fmt:
        for handler in logging.getLogger().handlers:
            handler.setFormatter(logging.Formatter(fmt))
