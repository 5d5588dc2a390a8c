"""Application configuration loader.

Loads centralized configuration from data/config/app_config_v1.yaml
with built-in defaults and environment overrides.

Usage:
    from learning.config.app_config import load_app_config

    config = load_app_config()
    config.api.base_url
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

CONFIG_FILE = Path("data/config/app_config_v1.yaml")

ENV_BASE_URL = "LEARNING_API_BASE_URL"
ENV_TIMEOUT = "LEARNING_API_TIMEOUT"
ENV_DATA_DIR = "LEARNING_DATA_DIR"

DEFAULT_BASE_URL = "http://localhost:8080"
DEFAULT_TIMEOUT = 10.0


@dataclass
class ApiConfig:
    """Connection settings for the learning backend."""

    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT


@dataclass
class AppConfig:
    """Application-wide configuration."""

    api: ApiConfig = field(default_factory=ApiConfig)
    paths: dict[str, str] = field(default_factory=dict)

    @property
    def state_dir(self) -> Path:
        """Directory holding persisted client state (tokens, cached user)."""
        return Path(self.paths.get("state_dir", "data/state"))


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "api": {
            "base_url": DEFAULT_BASE_URL,
            "timeout": DEFAULT_TIMEOUT,
        },
        "paths": {
            "state_dir": "data/state",
        },
    }


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Environment variables win over file values."""
    api = data.setdefault("api", {})
    paths = data.setdefault("paths", {})

    if base_url := os.environ.get(ENV_BASE_URL):
        api["base_url"] = base_url

    if timeout := os.environ.get(ENV_TIMEOUT):
        try:
            api["timeout"] = float(timeout)
        except ValueError:
            logger.warning("invalid_timeout_env", value=timeout)

    if data_dir := os.environ.get(ENV_DATA_DIR):
        paths["state_dir"] = str(Path(data_dir) / "state")

    return data


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    api_data = data.get("api") or {}
    api = ApiConfig(
        base_url=str(api_data.get("base_url", DEFAULT_BASE_URL)).rstrip("/"),
        timeout=float(api_data.get("timeout", DEFAULT_TIMEOUT)),
    )

    paths = {**_get_defaults()["paths"], **(data.get("paths") or {})}

    return AppConfig(api=api, paths=paths)


def load_app_config(force_reload: bool = False) -> AppConfig:
    """Load application config.

    Args:
        force_reload: If True, ignore cached config and reload from file.

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload:
        return _cached_config

    data: dict[str, Any]

    if CONFIG_FILE.exists():
        logger.debug("loading_app_config", source=str(CONFIG_FILE))
        data = yaml.safe_load(CONFIG_FILE.read_text(encoding="utf-8")) or {}
    else:
        logger.debug("using_default_config")
        data = _get_defaults()

    _cached_config = _parse_config(_apply_env_overrides(data))
    return _cached_config


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None
