"""
Layered settings loading.

Settings come from up to two YAML files in a config directory:
- `default.yaml` (checked in)
- `config.yaml` (local overrides)

The directory is `config/` under the working directory unless the
TRTDETECT_CONFIG_DIR environment variable names another one. Both files
are optional; without them the built-in defaults apply.
"""

from __future__ import annotations

import os
from typing import Any, Dict, Optional, Tuple

import yaml

from trtdetect.errors import ConfigError
from trtdetect.models.config import Settings

CONFIG_DIR_ENV = "TRTDETECT_CONFIG_DIR"
DEFAULT_CONFIG_DIR = "config"

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def _read_yaml(path: str) -> Dict[str, Any]:
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse configuration file {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read configuration file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration file {path} must contain a mapping")
    return data


def resolve_config_dir(config_dir: Optional[str] = None) -> str:
    """Return the explicit directory, else the environment override, else `config`."""
    if config_dir:
        return config_dir
    return os.environ.get(CONFIG_DIR_ENV) or DEFAULT_CONFIG_DIR


def load_config(config_dir: Optional[str] = None) -> Dict[str, Any]:
    """Load default.yaml then config.yaml from the config directory and merge them."""
    config_dir = resolve_config_dir(config_dir)
    merged: Dict[str, Any] = {}
    for name in ("default.yaml", "config.yaml"):
        path = os.path.join(config_dir, name)
        if os.path.exists(path):
            merged = _deep_merge(merged, _read_yaml(path))
    return merged


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    benchmark = config.get("benchmark", {}) or {}
    if not isinstance(benchmark, dict):
        return False, "benchmark must be a mapping"
    if "warmup_index" in benchmark:
        wi = benchmark["warmup_index"]
        if isinstance(wi, bool) or not isinstance(wi, int) or wi < 0:
            return False, "benchmark.warmup_index must be a non-negative integer"

    log_level = config.get("log_level", "INFO")
    if log_level not in VALID_LOG_LEVELS:
        return False, f"log_level must be one of: {', '.join(VALID_LOG_LEVELS)}"

    log_path = config.get("log_path")
    if log_path is not None and not isinstance(log_path, str):
        return False, "log_path must be a string"

    return True, None


def load_settings(config_dir: Optional[str] = None) -> Settings:
    """Load, validate and adapt settings; raises ConfigError when invalid."""
    config = load_config(config_dir)
    is_valid, error_msg = validate_config(config)
    if not is_valid:
        raise ConfigError(f"Configuration validation failed: {error_msg}")
    return Settings.from_dict(config)
