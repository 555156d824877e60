"""Configuration file loading and CLI overrides for runtime tunables.

Kept apart from crateclone.py to keep the entrypoint slim. Values are applied
onto ``Constants``; the CLI has the highest precedence, then an explicit
``--config`` file, then the default config file locations.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Optional

import yaml

from constants import Constants, _load_yaml_config
from errors import CloneError

logger = logging.getLogger(__name__)


class ConfigError(CloneError):
    """Raised when a configuration file cannot be read or has invalid values."""


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load the configuration mapping.

    Args:
        path: Explicit YAML or JSON file. When None the default locations are
            searched and a missing file yields an empty mapping.

    Raises:
        ConfigError: If an explicit file is missing, unreadable or not a mapping.
    """
    if not path:
        return _load_yaml_config()

    if not os.path.isfile(path):
        raise ConfigError(f"config file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as fh:
            if path.lower().endswith(".json"):
                data = json.load(fh)
            else:
                data = yaml.safe_load(fh) or {}
    except (OSError, ValueError, yaml.YAMLError) as exc:
        raise ConfigError(f"failed to load config {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"config file {path} must contain a mapping at the top level")
    return data


def _section(cfg: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = cfg.get(key) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"config section `{key}` must be a mapping")
    return value


def apply_config(cfg: Dict[str, Any]) -> None:
    """Map configuration values onto ``Constants``.

    Recognized keys: ``home``, ``registry.index``, ``registry.api``,
    ``http.timeout``, ``http.user_agent`` and ``sources``.
    """
    if not cfg:
        return
    if cfg.get("home"):
        Constants.DEFAULT_HOME = str(cfg["home"])

    registry = _section(cfg, "registry")
    if registry.get("index"):
        Constants.CRATES_IO_INDEX = str(registry["index"])
    if registry.get("api"):
        Constants.CRATES_IO_API = str(registry["api"])

    http = _section(cfg, "http")
    if http.get("timeout") is not None:
        try:
            Constants.REQUEST_TIMEOUT = float(http["timeout"])
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"http.timeout must be a number, got {http['timeout']!r}") from exc
    if http.get("user_agent"):
        Constants.USER_AGENT = str(http["user_agent"])

    sources = _section(cfg, "sources")
    if sources:
        Constants.SOURCES = dict(sources)
        logger.debug("Loaded %d named source(s) from config", len(sources))


def apply_cli_overrides(args) -> None:
    """Apply CLI overrides with highest precedence."""
    home = getattr(args, "HOME", None)
    if home:
        os.environ[Constants.ENV_HOME] = os.path.abspath(os.path.expanduser(home))
