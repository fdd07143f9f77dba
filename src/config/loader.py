"""YAML configuration loader with environment variable overrides.

Configuration is layered, later layers winning:

    1. config/config.yaml  — static defaults checked into the repo
    2. .env file           — local developer overrides (not committed)
    3. environment vars    — set at deploy time

``load_config()`` reads the YAML file first, then deep-merges the values
derived from :class:`Settings` on top.
"""

from pathlib import Path

import yaml

from src.config.settings import Settings
from src.utils.errors import ConfigurationError


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Args:
        path: Path to the YAML configuration file.
        settings: Pre-built settings; a fresh ``Settings()`` is used if omitted.

    Returns:
        Fully resolved configuration dictionary.

    Raises:
        ConfigurationError: If the YAML file is unparseable or not a mapping.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path) as f:
            try:
                yaml_config = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise ConfigurationError(f"Cannot parse {config_path}: {exc}") from exc
        if not isinstance(yaml_config, dict):
            raise ConfigurationError(f"{config_path} must contain a mapping at the top level")
    else:
        yaml_config = {}

    settings = settings or Settings()
    env_overrides = {
        "app": {
            "host": settings.app_host,
            "port": settings.app_port,
            "env": settings.app_env,
        },
        "providers": {
            "configured": settings.get_configured_providers(),
            "ticketmaster": {
                "base_url": settings.ticketmaster_base_url,
                "default_page_size": settings.ticketmaster_default_page_size,
            },
            "setlistfm": {
                "base_url": settings.setlist_fm_base_url,
            },
        },
        "catalog": {
            "db_path": settings.catalog_db_path,
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
