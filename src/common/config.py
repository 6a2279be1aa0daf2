"""Runtime configuration: environment, ``.env`` files, YAML config files and cache paths."""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from constants import Constants

logger = logging.getLogger(__name__)

# YAML key -> Constants attribute
CONFIG_KEYS = {
    "registry_url": "REGISTRY_URL_NPM",
    "ecosystems_api_base": "ECOSYSTEMS_API_BASE",
    "cache_dir": "CACHE_DIR",
    "cache_ttl_sec": "POPULARITY_CACHE_TTL_SEC",
    "request_timeout": "REQUEST_TIMEOUT",
    "max_concurrency": "NPM_MAX_CONCURRENCY",
    "registry_cache_ttl_sec": "REGISTRY_CACHE_TTL_SEC",
}
_INT_KEYS = {"cache_ttl_sec", "request_timeout", "max_concurrency", "registry_cache_ttl_sec"}


class ConfigError(Exception):
    """Raised when a configuration file cannot be read or is malformed."""


def load_environment(dotenv_path: Optional[str] = None) -> None:
    """Load a ``.env`` file and apply environment overrides onto Constants.

    Variables already present in the environment win over ``.env`` entries.
    """
    load_dotenv(dotenv_path=dotenv_path, override=False)
    cache_dir = os.environ.get(Constants.ENV_CACHE_DIR) or os.environ.get(Constants.ENV_CACHE_DIR_LEGACY)
    if cache_dir:
        Constants.CACHE_DIR = cache_dir
    registry_url = os.environ.get(Constants.ENV_REGISTRY_URL)
    if registry_url:
        Constants.REGISTRY_URL_NPM = registry_url


def load_config_file(path: str) -> Dict[str, Any]:
    """Read a YAML (or JSON) config file and apply known keys onto Constants.

    Args:
        path: Config file path.

    Returns:
        The mapping of recognized keys that were applied.

    Raises:
        ConfigError: If the file is missing, unparsable or not a mapping.
    """
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
    except OSError as exc:
        raise ConfigError(f"Couldn't read config file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    applied: Dict[str, Any] = {}
    for key, value in data.items():
        attr = CONFIG_KEYS.get(key)
        if attr is None:
            logger.warning("Ignoring unknown config key: %s", key)
            continue
        if key in _INT_KEYS and value is not None:
            try:
                value = int(value)
            except (TypeError, ValueError) as exc:
                raise ConfigError(f"Config key {key} must be an integer") from exc
        setattr(Constants, attr, value)
        applied[key] = value
    logger.debug("Loaded config from %s: %s", path, sorted(applied))
    return applied


def get_cache_dir() -> str:
    """Root cache directory (default ``~/.cache/deptrace``)."""
    if Constants.CACHE_DIR:
        return os.path.expanduser(str(Constants.CACHE_DIR))
    return os.path.join(os.path.expanduser("~"), ".cache", "deptrace")


def cache_dir_for(key: str) -> str:
    """Cache directory reserved for one consumer."""
    return os.path.join(get_cache_dir(), key)
