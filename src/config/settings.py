"""Configuration loading for the diabetes risk session."""

import copy
from pathlib import Path
from typing import Optional

import yaml

from src.config.constants import (
    DEFAULT_API_BASE_URL,
    DEFAULT_HISTORY_LIMIT,
    DEFAULT_TIMEOUT_SECONDS,
)

DEFAULT_CONFIG = {
    "api": {
        "base_url": DEFAULT_API_BASE_URL,
        "timeout_seconds": DEFAULT_TIMEOUT_SECONDS,
    },
    "history": {
        "limit": DEFAULT_HISTORY_LIMIT,
    },
    "logging": {
        "log_level": "INFO",
    },
}


def _merge(base: dict, override: dict) -> dict:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path: Optional[Path] = None) -> dict:
    """Load session configuration.

    Values missing from the file fall back to ``DEFAULT_CONFIG``.

    Args:
        config_path: Path to a YAML config file, or None for defaults only

    Returns:
        Configuration dictionary
    """
    if config_path is None:
        return copy.deepcopy(DEFAULT_CONFIG)

    with open(config_path, "r") as f:
        loaded = yaml.safe_load(f) or {}

    return _merge(DEFAULT_CONFIG, loaded)
