"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``      — committed static defaults
  2. ``config/local.toml``        — optional local overrides (gitignored)
  3. ``.env``                     — local env overrides (gitignored)
  4. Environment variables        — ``ACTIVITY_PLANNER_*`` prefix

Entry point: ``load_config(config_path=None) -> AppConfig``

Services and CLI commands receive an ``AppConfig`` (or one of its sections),
never raw dicts or individual env var lookups scattered through the codebase.
The weather TTL, default forecast window, HTTP timeout and retry count all
live here and are passed into services at construction.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

# ── Sub-config models ─────────────────────────────────────────────────────────


class DatabaseConfig(BaseModel):
    """SQLite database connection settings."""

    model_config = ConfigDict(frozen=True)

    db_path: str = "data/db/activity_planner.db"
    wal_mode: bool = True
    busy_timeout_ms: int = 5000


class ProvidersConfig(BaseModel):
    """Upstream geocoding / forecast provider settings (Open-Meteo)."""

    model_config = ConfigDict(frozen=True)

    geocoding_url: str = "https://geocoding-api.open-meteo.com"
    forecast_url: str = "https://api.open-meteo.com"
    timeout_seconds: float = 10.0
    max_retries: int = 2
    language: str = "en"

    @field_validator("geocoding_url", "forecast_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Provider URL must be http(s), got '{v}'.")
        return v.rstrip("/")

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {v}.")
        return v

    @field_validator("max_retries")
    @classmethod
    def validate_retries(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"max_retries must be >= 0, got {v}.")
        return v


class CacheConfig(BaseModel):
    """Freshness and window settings for the city and weather caches."""

    model_config = ConfigDict(frozen=True)

    weather_ttl_minutes: int = 30
    default_forecast_days: int = 7
    city_min_cached_results: int = 5     # floor for min(limit, floor) cache hits
    default_search_limit: int = 10
    recent_forecasts_per_city: int = 7

    @field_validator("weather_ttl_minutes", "city_min_cached_results", "recent_forecasts_per_city")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"Value must be >= 1, got {v}.")
        return v

    @field_validator("default_forecast_days")
    @classmethod
    def validate_forecast_days(cls, v: int) -> int:
        if not 1 <= v <= 16:
            raise ValueError(f"default_forecast_days must be in [1, 16], got {v}.")
        return v

    @field_validator("default_search_limit")
    @classmethod
    def validate_search_limit(cls, v: int) -> int:
        if not 1 <= v <= 100:
            raise ValueError(f"default_search_limit must be in [1, 100], got {v}.")
        return v


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = "data/logs/activity_planner.log"
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class AppConfig(BaseModel):
    """Complete application configuration, the single source of truth.

    Constructed by ``load_config()`` which merges TOML + .env + environment.
    """

    model_config = ConfigDict(frozen=True)

    database: DatabaseConfig = DatabaseConfig()
    providers: ProvidersConfig = ProvidersConfig()
    cache: CacheConfig = CacheConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent

ENV_PREFIX = "ACTIVITY_PLANNER_"


def _find_project_root() -> Path:
    """Walk up from this file to find the project root (contains pyproject.toml)."""
    candidate = Path(__file__).parent
    for _ in range(5):
        if (candidate / "pyproject.toml").exists():
            return candidate
        candidate = candidate.parent
    return _PROJECT_ROOT


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit path to a TOML config file. Defaults to
            ``<project_root>/config/default.toml``.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If the config file does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _find_project_root()

    # 1. Load .env file (silently skip if missing)
    load_dotenv(dotenv_path=root / ".env", override=False)

    # 2. Load TOML config
    if config_path is None:
        config_path = root / "config" / "default.toml"

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}\n"
            "Create config/default.toml or pass --config explicitly."
        )

    with open(config_path, "rb") as f:
        raw: dict[str, Any] = tomllib.load(f)

    local_config_path = config_path.parent / "local.toml"
    if local_config_path.exists():
        with open(local_config_path, "rb") as f:
            local_raw: dict[str, Any] = tomllib.load(f)
        raw = _deep_merge(raw, local_raw)

    # 3. Apply ACTIVITY_PLANNER_* environment variable overrides
    raw = _apply_env_overrides(raw)

    # 4. Build and validate AppConfig
    return _build_app_config(raw)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


# env var suffix → (section, key)
_ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "DB_PATH":             ("database",  "db_path"),
    "LOG_LEVEL":           ("logging",   "level"),
    "GEOCODING_URL":       ("providers", "geocoding_url"),
    "FORECAST_URL":        ("providers", "forecast_url"),
    "WEATHER_TTL_MINUTES": ("cache",     "weather_ttl_minutes"),
}


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply ACTIVITY_PLANNER_* env vars to the raw config dict.

    Supported overrides:
      ACTIVITY_PLANNER_DB_PATH             → raw["database"]["db_path"]
      ACTIVITY_PLANNER_LOG_LEVEL           → raw["logging"]["level"]
      ACTIVITY_PLANNER_GEOCODING_URL       → raw["providers"]["geocoding_url"]
      ACTIVITY_PLANNER_FORECAST_URL        → raw["providers"]["forecast_url"]
      ACTIVITY_PLANNER_WEATHER_TTL_MINUTES → raw["cache"]["weather_ttl_minutes"]
      ACTIVITY_PLANNER_DEBUG               → raw["debug"]
    """
    for suffix, (section, key) in _ENV_OVERRIDES.items():
        if value := os.environ.get(ENV_PREFIX + suffix):
            raw.setdefault(section, {})[key] = value

    if debug := os.environ.get(ENV_PREFIX + "DEBUG"):
        raw["debug"] = debug.lower() in ("1", "true", "yes")

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure."""
    project = raw.pop("project", {})

    return AppConfig(
        database=DatabaseConfig(**raw.get("database", {})),
        providers=ProvidersConfig(**raw.get("providers", {})),
        cache=CacheConfig(**raw.get("cache", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        debug=raw.get("debug", project.get("debug", False)),
    )
