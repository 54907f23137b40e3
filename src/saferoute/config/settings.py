"""
Application settings (Pydantic).

Settings are loaded from `src/saferoute/config/defaults.yaml`, then optionally overridden by:
- an external YAML file via `SAFEROUTE_CONFIG_PATH`
- a small whitelist of environment variables (e.g., `TILE_SIZE_M`, `K_ANON`, `GOOGLE_MAPS_API_KEY`)

Design rule:
- The environment is read here and only here. Engine components receive a `Settings`
  instance (or explicit values) and never look at `os.environ` themselves.
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, model_validator

from saferoute.core.env import load_dotenv_if_present


def _parse_mapping(text: str, source: str) -> dict[str, Any]:
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{source}: expected a YAML mapping at the top level.")
    return data


def _read_package_yaml(filename: str) -> dict[str, Any]:
    """Read a YAML file shipped inside `saferoute.config`."""
    text = resources.files("saferoute.config").joinpath(filename).read_text(encoding="utf-8")
    return _parse_mapping(text, filename)


def _read_yaml_file(path: str | Path) -> dict[str, Any]:
    return _parse_mapping(Path(path).read_text(encoding="utf-8"), str(path))


class AppSettings(BaseModel):
    name: str = "SafeRoute"
    log_level: str = "INFO"
    cors_origins: list[str] = Field(default_factory=list)


class PrivacySettings(BaseModel):
    tile_size_m: float = Field(50, gt=0)
    k_anon: int = Field(3, ge=1)


class AggregationSettings(BaseModel):
    window_days: int = Field(30, ge=1)
    heatmap_window_days: int = Field(90, ge=1)
    store_timeout_seconds: float = Field(10, gt=0)


class RoutingSettings(BaseModel):
    default_steps: int = 20
    fallback_steps: int = 40
    min_steps: int = Field(5, ge=1)
    max_steps: int = 200
    offset_tiles: float = 3
    max_normalized: float = Field(0.7, gt=0, le=1)

    @model_validator(mode="after")
    def _validate_step_bounds(self) -> "RoutingSettings":
        if self.max_steps < self.min_steps:
            raise ValueError("routing.max_steps must be >= routing.min_steps")
        return self


class HeatmapSettings(BaseModel):
    cache_ttl_seconds: float = Field(60, gt=0)
    cache_max_entries: int = Field(512, ge=1)


class TileRiskSettings(BaseModel):
    night_penalty: float = Field(0.2, ge=0, le=1)
    dark_penalty: float = Field(0.1, ge=0, le=1)
    night_start_hour: int = Field(21, ge=0, le=24)
    night_end_hour: int = Field(6, ge=0, le=24)


class DirectionsSettings(BaseModel):
    routes_url: str = "https://routes.googleapis.com/directions/v2:computeRoutes"
    legacy_url: str = "https://maps.googleapis.com/maps/api/directions/json"
    api_key: str | None = None
    timeout_seconds: float = Field(5, gt=0)
    total_budget_seconds: float = Field(12, gt=0)
    travel_mode: str = "DRIVE"
    routing_preference: str = "TRAFFIC_AWARE_OPTIMAL"
    field_mask: str = (
        "routes.duration,routes.distanceMeters,routes.polyline.encodedPolyline,routes.description"
    )


class DatabaseSettings(BaseModel):
    url: str = "sqlite:///data/saferoute.db"
    echo: bool = False


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    privacy: PrivacySettings = Field(default_factory=PrivacySettings)
    aggregation: AggregationSettings = Field(default_factory=AggregationSettings)
    routing: RoutingSettings = Field(default_factory=RoutingSettings)
    heatmap: HeatmapSettings = Field(default_factory=HeatmapSettings)
    tile_risk: TileRiskSettings = Field(default_factory=TileRiskSettings)
    directions: DirectionsSettings = Field(default_factory=DirectionsSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)


# (env var, section, key); earlier entries win when two map to the same setting.
ENV_OVERRIDES: tuple[tuple[str, str, str], ...] = (
    ("SAFEROUTE_LOG_LEVEL", "app", "log_level"),
    ("SAFEROUTE_DATABASE_URL", "database", "url"),
    ("TILE_SIZE_M", "privacy", "tile_size_m"),
    ("K_ANON", "privacy", "k_anon"),
    ("AGG_WINDOW_DAYS", "aggregation", "window_days"),
    ("GOOGLE_MAPS_API_KEY", "directions", "api_key"),
    ("SERVER_GOOGLE_MAPS_KEY", "directions", "api_key"),
)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay the whitelisted environment variables onto a raw settings mapping.

    Values stay strings here; pydantic coerces and validates them.
    """
    load_dotenv_if_present()
    data = {k: dict(v) if isinstance(v, dict) else v for k, v in data.items()}
    applied: set[tuple[str, str]] = set()
    for env_name, section, key in ENV_OVERRIDES:
        value = os.getenv(env_name)
        if not value or (section, key) in applied:
            continue
        data.setdefault(section, {})[key] = value
        applied.add((section, key))

    cors = os.getenv("SAFEROUTE_CORS_ORIGINS")
    if cors:
        data.setdefault("app", {})["cors_origins"] = [s.strip() for s in cors.split(",") if s.strip()]
    return data


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached)."""
    load_dotenv_if_present()
    config_path = os.getenv("SAFEROUTE_CONFIG_PATH")
    raw = _read_yaml_file(config_path) if config_path else _read_package_yaml("defaults.yaml")
    raw = _apply_env_overrides(raw)
    return Settings.model_validate(raw)


@lru_cache
def get_logging_config() -> dict[str, Any]:
    """Load logging configuration (cached)."""
    return _read_package_yaml("logging.yaml")
