"""Application configuration loader.

Loads centralized configuration from data/config/app_config_v1.yaml and
lets environment variables override individual values.

Usage:
    from profman.config.app_config import load_app_config

    config = load_app_config()
    ttl = config.auth.access_token_ttl
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("data/config/app_config_v1.yaml")

DEFAULT_JWT_SECRET = "profman-dev-secret-change-me"

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$")
_DURATION_UNITS = {"": "seconds", "s": "seconds", "m": "minutes", "h": "hours", "d": "days"}

# env var -> (section, key)
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "PROFMAN_ENV": ("app", "env"),
    "CORS_ORIGIN": ("app", "cors_origin"),
    "JWT_SECRET": ("auth", "jwt_secret"),
    "JWT_EXPIRES_IN": ("auth", "access_expires_in"),
    "JWT_REFRESH_EXPIRES_IN": ("auth", "refresh_expires_in"),
    "BCRYPT_ROUNDS": ("auth", "bcrypt_rounds"),
    "PROFMAN_DB_BACKEND": ("database", "backend"),
    "PROFMAN_DB_PATH": ("database", "path"),
    "FIREBASE_PROJECT_ID": ("database", "firebase_project_id"),
    "FIREBASE_CREDENTIALS": ("database", "firebase_credentials"),
    "DRIVE_CLIENT_ID": ("google", "client_id"),
    "DRIVE_CLIENT_SECRET": ("google", "client_secret"),
    "DRIVE_REDIRECT_URI": ("google", "redirect_uri"),
}


def parse_duration(value: str | int) -> timedelta:
    """Parse durations like "15m", "7d", "12h" or plain seconds.

    Raises:
        ValueError: If the value is not a recognised duration
    """
    if isinstance(value, int):
        return timedelta(seconds=value)
    match = _DURATION_RE.match(str(value))
    if not match:
        raise ValueError(f"Invalid duration: {value!r}")
    amount, unit = match.groups()
    return timedelta(**{_DURATION_UNITS[unit]: int(amount)})


@dataclass
class AuthConfig:
    """Token signing and password hashing settings."""

    jwt_secret: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    access_expires_in: str = "15m"
    refresh_expires_in: str = "7d"
    bcrypt_rounds: int = 12

    @property
    def access_token_ttl(self) -> timedelta:
        return parse_duration(self.access_expires_in)

    @property
    def refresh_token_ttl(self) -> timedelta:
        return parse_duration(self.refresh_expires_in)


@dataclass
class DatabaseConfig:
    """Document store backend selection."""

    backend: str = "sqlite"  # sqlite | firestore
    path: str = "db/profman.db"
    firebase_project_id: str | None = None
    firebase_credentials: str | None = None


@dataclass
class GoogleConfig:
    """OAuth client used for Drive and Sheets."""

    client_id: str | None = None
    client_secret: str | None = None
    redirect_uri: str | None = None

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret and self.redirect_uri)


@dataclass
class AppConfig:
    """Application-wide configuration."""

    env: str = "development"
    cors_origin: str = "http://localhost:5173"
    auth: AuthConfig = field(default_factory=AuthConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    google: GoogleConfig = field(default_factory=GoogleConfig)

    @property
    def is_production(self) -> bool:
        return self.env == "production"

    @property
    def is_development(self) -> bool:
        return self.env == "development"


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "app": {
            "env": "development",
            "cors_origin": "http://localhost:5173",
        },
        "auth": {
            "jwt_secret": DEFAULT_JWT_SECRET,
            "jwt_algorithm": "HS256",
            "access_expires_in": "15m",
            "refresh_expires_in": "7d",
            "bcrypt_rounds": 12,
        },
        "database": {
            "backend": "sqlite",
            "path": "db/profman.db",
        },
        "google": {},
    }


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge one level of nested sections."""
    result = {section: dict(values) for section, values in base.items()}
    for section, values in (override or {}).items():
        if isinstance(values, dict):
            result.setdefault(section, {}).update(values)
    return result


def _apply_env(data: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variable overrides."""
    for env_name, (section, key) in ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value:
            data.setdefault(section, {})[key] = value
    return data


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    app_data = data.get("app", {})
    auth_data = data.get("auth", {})
    db_data = data.get("database", {})
    google_data = data.get("google", {})

    auth = AuthConfig(
        jwt_secret=auth_data.get("jwt_secret", DEFAULT_JWT_SECRET),
        jwt_algorithm=auth_data.get("jwt_algorithm", "HS256"),
        access_expires_in=str(auth_data.get("access_expires_in", "15m")),
        refresh_expires_in=str(auth_data.get("refresh_expires_in", "7d")),
        bcrypt_rounds=int(auth_data.get("bcrypt_rounds", 12)),
    )
    # Fail fast on bad durations
    parse_duration(auth.access_expires_in)
    parse_duration(auth.refresh_expires_in)

    database = DatabaseConfig(
        backend=db_data.get("backend", "sqlite"),
        path=db_data.get("path", "db/profman.db"),
        firebase_project_id=db_data.get("firebase_project_id"),
        firebase_credentials=db_data.get("firebase_credentials"),
    )
    if database.backend not in ("sqlite", "firestore"):
        raise ValueError(f"Unknown database backend: {database.backend}")

    google = GoogleConfig(
        client_id=google_data.get("client_id"),
        client_secret=google_data.get("client_secret"),
        redirect_uri=google_data.get("redirect_uri"),
    )

    return AppConfig(
        env=app_data.get("env", "development"),
        cors_origin=app_data.get("cors_origin", "http://localhost:5173"),
        auth=auth,
        database=database,
        google=google,
    )


def load_app_config(force_reload: bool = False) -> AppConfig:
    """Load application config (file + environment).

    Args:
        force_reload: If True, ignore cached config and reload from file.

    Returns:
        AppConfig object with all settings.

    Raises:
        ValueError: On a bad duration or backend, or the default JWT secret
            in production
    """
    global _cached_config

    if _cached_config is not None and not force_reload:
        return _cached_config

    data = _get_defaults()

    if CONFIG_FILE.exists():
        logger.debug("loading_app_config", source=str(CONFIG_FILE))
        file_data = yaml.safe_load(CONFIG_FILE.read_text(encoding="utf-8")) or {}
        data = _merge(data, file_data)
    else:
        logger.debug("using_default_config")

    data = _apply_env(data)
    config = _parse_config(data)

    if config.is_production and config.auth.jwt_secret == DEFAULT_JWT_SECRET:
        raise ValueError("JWT_SECRET must be set in production")

    _cached_config = config
    return _cached_config


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None
