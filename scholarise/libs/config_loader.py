"""Configuration loading utilities for the assessment engine."""

import copy
import os
from typing import Any
import logging

import yaml

LOG = logging.getLogger(__name__)

ConfigType = dict[str, Any]

_MISSING = object()


def _config_dir() -> str:
    # scholarise/libs -> scholarise -> project root
    current_dir = os.path.dirname(os.path.abspath(__file__))
    project_root = os.path.dirname(os.path.dirname(current_dir))
    return os.path.join(project_root, "config")


def load_configs(*path_configs: str) -> ConfigType:
    """Load and merge YAML configuration files.

    Later files override earlier ones key by key; nested mappings are merged
    recursively.

    Args:
        *path_configs: Paths to YAML configuration files

    Returns:
        Merged configuration dictionary

    Raises:
        TypeError: If a config file doesn't contain a dict
        ValueError: If no configs are loaded
    """
    def merge(orig_conf: Any, new_conf: Any):
        if isinstance(orig_conf, dict) and isinstance(new_conf, dict):
            result = copy.deepcopy(orig_conf)
            for k, v in new_conf.items():
                if k in orig_conf:
                    result[k] = merge(orig_conf[k], v)
                else:
                    result[k] = copy.deepcopy(v)
            return result
        return copy.deepcopy(new_conf)

    result: ConfigType = {}
    for path in path_configs:
        if not os.path.isfile(path):
            LOG.debug("Skipping missing config file %r", path)
            continue
        LOG.info("loading config from %s", path)
        with open(path, "r", encoding="utf-8") as f:
            c = yaml.safe_load(f)
        if c is None:
            continue
        if not isinstance(c, dict):
            raise TypeError(f"YAML config file {path} must be a dict")
        result = merge(result, c)
    if not result:
        raise ValueError("No configs loaded")
    return result


def load_default_configs() -> ConfigType:
    """Load config/default.yaml overlaid with config/local.yaml (if present)."""
    config_dir = _config_dir()
    return load_configs(
        os.path.join(config_dir, "default.yaml"),
        os.path.join(config_dir, "local.yaml"),
    )


def get_config(key: str, config: ConfigType = None, default: Any = _MISSING) -> Any:
    """Get a configuration value by dot-separated key.

    Args:
        key: Dot-separated path to config value (e.g., "assessment.output.decimals")
        config: Configuration dict (if None, loads default configs)
        default: Value returned when the key is absent

    Returns:
        Configuration value

    Raises:
        KeyError: If key not found in configuration and no default was given
    """
    if config is None:
        config = load_default_configs()

    value: Any = config
    for k in key.split('.'):
        if not isinstance(value, dict) or k not in value:
            if default is not _MISSING:
                return default
            raise KeyError(f"Key {key} not found in configuration")
        value = value[k]
    return value
