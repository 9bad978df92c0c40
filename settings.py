from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_API_URL_ENV = "PURPLEAIR_API_URL"
_LEGACY_API_URL_ENV = "PURPLEAIR_LEGACY_API_URL"
_API_KEY_ENV = "PURPLEAIR_API_KEY"
_API_GENERATION_ENV = "PURPLEAIR_API_GENERATION"
_SENSOR_ID_ENV = "PURPLEAIR_SENSOR_ID"
_DEFAULT_SENSOR_ID_ENV = "PURPLEAIR_DEFAULT_SENSOR_ID"
_CACHE_DIR_ENV = "PURPLEAIR_CACHE_DIR"
_RESOLUTION_TTL_ENV = "PURPLEAIR_RESOLUTION_TTL"
_READING_MAX_AGE_ENV = "PURPLEAIR_READING_MAX_AGE"
_BOUND_OFFSET_ENV = "PURPLEAIR_BOUND_OFFSET"
_CORRECTION_ENV = "PURPLEAIR_CORRECTION"
_LATITUDE_ENV = "PURPLEAIR_LATITUDE"
_LONGITUDE_ENV = "PURPLEAIR_LONGITUDE"
_GEOLOCATION_URL_ENV = "PURPLEAIR_GEOLOCATION_URL"
_HTTP_TIMEOUT_ENV = "PURPLEAIR_HTTP_TIMEOUT"
_LOG_LEVEL_ENV = "LOG_LEVEL"

API_GENERATIONS = ("current", "legacy")


@dataclass(frozen=True)
class Settings:
    api_url: str
    legacy_api_url: str
    api_key: Optional[str]
    api_generation: str
    sensor_id: Optional[str]
    default_sensor_id: Optional[str]
    cache_dir: str
    resolution_ttl: float
    reading_max_age: float
    bound_offset: float
    correction: str
    latitude: Optional[float]
    longitude: Optional[float]
    geolocation_url: str
    http_timeout: float
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_positive_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_coordinate(name: str, limit: float) -> Optional[float]:
    value = _read_optional_env(name, None)
    if value is None:
        return None
    try:
        parsed = float(value)
    except ValueError:
        return None
    return parsed if -limit <= parsed <= limit else None


def _read_choice(name: str, choices: tuple[str, ...], default: str) -> str:
    candidate = _read_str_env(name, default).lower()
    return candidate if candidate in choices else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        api_url=_read_str_env(_API_URL_ENV, "https://api.purpleair.com").rstrip("/"),
        legacy_api_url=_read_str_env(_LEGACY_API_URL_ENV, "https://www.purpleair.com").rstrip("/"),
        api_key=_read_optional_env(_API_KEY_ENV, None),
        api_generation=_read_choice(_API_GENERATION_ENV, API_GENERATIONS, "current"),
        sensor_id=_read_optional_env(_SENSOR_ID_ENV, None),
        default_sensor_id=_read_optional_env(_DEFAULT_SENSOR_ID_ENV, None),
        cache_dir=_read_str_env(_CACHE_DIR_ENV, "./tmp/purpleair"),
        resolution_ttl=_read_positive_float(_RESOLUTION_TTL_ENV, 15 * 60.0),
        reading_max_age=_read_positive_float(_READING_MAX_AGE_ENV, 2 * 60 * 60.0),
        bound_offset=_read_positive_float(_BOUND_OFFSET_ENV, 0.05),
        correction=_read_str_env(_CORRECTION_ENV, "epa2021").lower(),
        latitude=_read_coordinate(_LATITUDE_ENV, 90.0),
        longitude=_read_coordinate(_LONGITUDE_ENV, 180.0),
        geolocation_url=_read_str_env(_GEOLOCATION_URL_ENV, "http://ip-api.com/json"),
        http_timeout=_read_positive_float(_HTTP_TIMEOUT_ENV, 30.0),
        log_level=_read_log_level("INFO"),
    )
