#!/usr/bin/env python3

import os
import json
import tomllib
from pathlib import Path

import logging
import sys

import yaml

from .exit_codes import ConfigError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stderr) # Default to stderr
    ]
)
logger = logging.getLogger("doccpages")

CONFIG_FILENAMES = ['.doccpages.yaml', '.doccpages.yml', '.doccpages.toml', '.doccpages.json']
USER_CONFIG_FILENAMES = ['config.yaml', 'config.yml', 'config.toml', 'config.json']


def get_config_path(root="."):
    """Get the path to the configuration file.

    Checks in order:
    1. DOCCPAGES_CONFIG environment variable
    2. .doccpages.{yaml,yml,toml,json} in the project root
    3. ~/.doccpages/config.{yaml,yml,toml,json}

    Returns None when no file exists.
    """
    # Check for environment variable override
    if 'DOCCPAGES_CONFIG' in os.environ:
        path = Path(os.environ['DOCCPAGES_CONFIG']).expanduser()
        if path.exists():
            return path
        logger.warning(f"DOCCPAGES_CONFIG points to a missing file: {path}")

    root = Path(root)
    for filename in CONFIG_FILENAMES:
        path = root / filename
        if path.is_file():
            return path

    user_dir = Path.home() / '.doccpages'
    for filename in USER_CONFIG_FILENAMES:
        path = user_dir / filename
        if path.is_file():
            return path

    return None


def read_config_file(config_path):
    """Parse a YAML, TOML or JSON configuration file into a dict."""
    config_path = Path(config_path)
    try:
        suffix = config_path.suffix.lower()
        if suffix == '.toml':
            with open(config_path, 'rb') as f:
                file_config = tomllib.load(f)
        elif suffix in ['.yaml', '.yml']:
            with open(config_path, 'r') as f:
                file_config = yaml.safe_load(f)
        else:
            # Default to JSON format
            with open(config_path, 'r') as f:
                file_config = json.load(f)
    except (OSError, json.JSONDecodeError, tomllib.TOMLDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"Error loading config from {config_path}: {e}") from e

    if file_config is None:
        return {}
    if not isinstance(file_config, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping")
    return file_config


def load_config(root=".", config_path=None):
    """Load configuration for a project root.

    Starts from the defaults, merges the first config file found,
    then applies DOCCPAGES_* environment overrides.
    """
    config = get_default_config()

    if config_path is None:
        config_path = get_config_path(root)
    if config_path is not None:
        logger.debug(f"Loading config from {config_path}")
        config = merge_configs(config, read_config_file(config_path))

    # Apply environment variable overrides
    config = apply_env_overrides(config)

    if not config['pages'].get('token'):
        config['pages']['token'] = (
            os.environ.get('DOCCPAGES_GITHUB_TOKEN') or os.environ.get('GITHUB_TOKEN') or ''
        )

    return config


def save_config(config, path):
    """Save configuration to a YAML file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        yaml.safe_dump(config, f, sort_keys=False, default_flow_style=False)
    logger.info(f"Configuration saved to {path}")


def get_default_config():
    """Get default configuration."""
    return {
        "pipeline": {
            "output_dir": "docs",
            "assets_dir": "MyDocs.docc/Assets",
            "derived_data_path": "/tmp/docbuild",
            "destination": "generic/platform=iOS",
            "configuration": "Debug",
            "products_platform": "iphoneos",
            "scheme": "",             # Empty: first scheme reported by xcodebuild
            "hosting_base_path": "",  # Empty: the selected scheme name
            "cleanup": True,
        },
        "toolchain": {
            "swift": "swift",
            "xcodebuild": "xcodebuild",
            "xcrun": "xcrun",
            "xcode_version": "",
            "applications_dir": "/Applications",
            "require_docc": True,
            "timeout_seconds": 3600,
        },
        "trigger": {
            "branches": ["main"],
        },
        "pages": {
            "target": "branch",
            "branch": "gh-pages",
            "remote": "origin",
            "directory": "",
            "repository": "",
            "token": "",
            "api_url": "https://api.github.com",
            "commit_message": "Deploy documentation",
        },
        "concurrency": {
            "group": "pages",
            "cancel_in_progress": True,
            "lock_dir": "~/.doccpages/locks",
        },
        "logging": {
            "level": "INFO",
        },
    }


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
    Environment variables follow the pattern: DOCCPAGES_SECTION_KEY
    For example: DOCCPAGES_PIPELINE_OUTPUT_DIR=site
    """
    env_prefix = "DOCCPAGES_"

    for env_key, value in os.environ.items():
        if not env_key.startswith(env_prefix):
            continue

        key_parts = env_key[len(env_prefix):].lower().split('_')

        # Convert value
        if value.lower() in ('true', 'yes', 'on'):
            typed_value = True
        elif value.lower() in ('false', 'no', 'off'):
            typed_value = False
        elif value.isdigit():
            typed_value = int(value)
        else:
            typed_value = value

        current_level = config
        i = 0
        while i < len(key_parts):
            # Find the longest key in current_level that is a prefix of the remaining key_parts
            best_match_len = 0
            matched_key = None

            for config_key in current_level.keys():
                config_key_parts_from_key = config_key.split('_')
                if key_parts[i : i + len(config_key_parts_from_key)] == config_key_parts_from_key:
                    if len(config_key_parts_from_key) > best_match_len:
                        best_match_len = len(config_key_parts_from_key)
                        matched_key = config_key

            if matched_key is None:
                break

            # If we are at the end of the env var, we have found the key to set
            if i + best_match_len == len(key_parts):
                if not isinstance(current_level[matched_key], dict):
                    current_level[matched_key] = typed_value
                break

            # Otherwise, we descend into the dictionary
            if not isinstance(current_level[matched_key], dict):
                break
            current_level = current_level[matched_key]
            i += best_match_len

    return config
