"""Configuration package for the learning client."""

from learning.config.app_config import (
    ApiConfig,
    AppConfig,
    clear_config_cache,
    load_app_config,
)

__all__ = [
    "ApiConfig",
    "AppConfig",
    "clear_config_cache",
    "load_app_config",
]
