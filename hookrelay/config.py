# =============================================================================
# HOOKRELAY - CONFIGURATION
# =============================================================================
"""
Configuration Loading

Loads configuration from a YAML file, applies environment variable
overrides, then fills in defaults.

Sections:
    webhook: path, secret, events, algorithm
    server:  host, port
    logging: level, format, file
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)


# Environment variable -> (section, key)
ENV_MAPPINGS = {
    # Webhook
    "WEBHOOK_PATH": ("webhook", "path"),
    "WEBHOOK_SECRET": ("webhook", "secret"),
    "WEBHOOK_EVENTS": ("webhook", "events"),
    "WEBHOOK_ALGORITHM": ("webhook", "algorithm"),
    # Server
    "SERVER_HOST": ("server", "host"),
    "SERVER_PORT": ("server", "port"),
    # Logging
    "LOG_LEVEL": ("logging", "level"),
    "LOG_FORMAT": ("logging", "format"),
    "LOG_FILE": ("logging", "file"),
}

DEFAULTS: Dict[str, Dict[str, Any]] = {
    "webhook": {
        "path": "/webhook",
        "events": None,
        "algorithm": "sha1",
    },
    "server": {
        "host": "0.0.0.0",
        "port": 8080,
    },
    "logging": {
        "level": "INFO",
        "format": "json",
        "file": None,
    },
}


def _coerce_env(key: str, value: str) -> Any:
    if key == "events":
        return [name.strip() for name in value.split(",") if name.strip()]
    # Convert numeric strings
    if value.isdigit():
        return int(value)
    return value


def load_config(
    config_path: Optional[str] = None,
    environ: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    """
    Load configuration from YAML file and environment variables.

    Environment variables override YAML values.

    Args:
        config_path: Path to hookrelay.yaml (optional)
        environ: Environment mapping, defaults to os.environ

    Returns:
        Merged configuration dictionary
    """
    config: Dict[str, Any] = {}
    environ = os.environ if environ is None else environ

    # Load YAML config if exists
    if config_path:
        config_file = Path(config_path)
        if config_file.exists():
            with open(config_file) as f:
                config = yaml.safe_load(f) or {}
            logger.info(f"Loaded config from {config_path}")
        else:
            logger.warning(f"Config file not found: {config_path}, using defaults")

    # Environment variable overrides
    for env_var, (section, key) in ENV_MAPPINGS.items():
        value = environ.get(env_var)
        if value is not None:
            config.setdefault(section, {})
            config[section][key] = _coerce_env(key, value)

    # Apply defaults
    for section, section_defaults in DEFAULTS.items():
        if not isinstance(config.get(section), dict):
            config[section] = {}
        for key, default_value in section_defaults.items():
            config[section].setdefault(key, default_value)

    return config


__all__ = [
    "load_config",
    "ENV_MAPPINGS",
    "DEFAULTS",
]
