"""Configuration package for ProfMan."""

from profman.config.app_config import (
    AppConfig,
    AuthConfig,
    DatabaseConfig,
    GoogleConfig,
    clear_config_cache,
    load_app_config,
    parse_duration,
)

__all__ = [
    "AppConfig",
    "AuthConfig",
    "DatabaseConfig",
    "GoogleConfig",
    "clear_config_cache",
    "load_app_config",
    "parse_duration",
]
