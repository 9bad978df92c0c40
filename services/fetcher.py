"""Sensor reading retrieval with a stale-cache fallback."""

from __future__ import annotations

import json
import logging
import math
import re
from datetime import timedelta
from typing import Any, Dict, Optional

from clients.purpleair import PurpleAirClient
from models.records import Clock, RawReading, utc_now
from models.schemas import CachedReading
from services.errors import (
    AirQualityError,
    MalformedReadingPayload,
    ReadingFetchFailed,
    StaleOrMissingCache,
)
from storage.cache import JsonFileCache

logger = logging.getLogger(__name__)

_INT_PREFIX = re.compile(r"^\s*[+-]?\d+")


def parse_int(value: Any) -> float:
    """Parse ``value`` the way the PurpleAir widget always has (``parseInt``).

    Strings yield their leading integer, numbers are truncated toward zero,
    anything else becomes ``nan``.
    """
    if isinstance(value, bool):
        return math.nan
    if isinstance(value, int):
        return float(value)
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return math.nan
        return float(math.trunc(value))
    if isinstance(value, str):
        match = _INT_PREFIX.match(value)
        if match is None:
            return math.nan
        return float(int(match.group()))
    return math.nan


def parse_float(value: Any) -> float:
    if isinstance(value, bool) or value is None:
        return math.nan
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def _optional_float(value: Any) -> Optional[float]:
    parsed = parse_float(value)
    return None if math.isnan(parsed) else parsed


def _optional_int(value: Any) -> Optional[int]:
    parsed = parse_int(value)
    return None if math.isnan(parsed) else int(parsed)


def _defined(record: Dict[str, Any], *keys: str) -> bool:
    return any(record.get(key) is not None for key in keys)


def is_valid_payload(payload: Any) -> bool:
    """True when ``payload`` carries a sensor object with the PM2.5 and humidity fields.

    Current payloads may report PM2.5 per channel instead of combined; legacy
    payloads keep both fields on the first result.
    """
    if not isinstance(payload, dict):
        return False
    if "sensor" in payload:
        sensor = payload["sensor"]
        return (
            isinstance(sensor, dict)
            and _defined(sensor, "pm2.5_cf_1", "pm2.5_cf_1_a", "pm2.5_cf_1_b")
            and _defined(sensor, "humidity")
        )
    results = payload.get("results")
    if not isinstance(results, list) or not results or not isinstance(results[0], dict):
        return False
    return _defined(results[0], "pm2_5_cf_1") and _defined(results[0], "humidity")


def parse_payload(sensor_id: str, payload: Dict[str, Any], from_cache: bool = False) -> RawReading:
    if not is_valid_payload(payload):
        raise MalformedReadingPayload(f"Reading for sensor {sensor_id} is missing its sensor fields.")
    if "sensor" in payload:
        return _parse_current(sensor_id, payload["sensor"], from_cache)
    return _parse_legacy(sensor_id, payload["results"], from_cache)


def _parse_current(sensor_id: str, sensor: Dict[str, Any], from_cache: bool) -> RawReading:
    pm25_cf1 = parse_int(sensor.get("pm2.5_cf_1"))
    if math.isnan(pm25_cf1) and _defined(sensor, "pm2.5_cf_1_a", "pm2.5_cf_1_b"):
        raw_a = sensor.get("pm2.5_cf_1_a")
        raw_b = sensor.get("pm2.5_cf_1_b")
        channel_a = parse_int(raw_b if raw_a is None else raw_a)
        channel_b = parse_int(raw_a if raw_b is None else raw_b)
        pm25_cf1 = (channel_a + channel_b) / 2

    stats = sensor.get("stats")
    if not isinstance(stats, dict):
        stats = {}

    return RawReading(
        sensor_id=sensor_id,
        pm25_raw=parse_int(sensor.get("pm2.5")),
        pm25_cf1=pm25_cf1,
        humidity=parse_int(sensor.get("humidity")),
        timestamp=_optional_int(sensor.get("last_seen")),
        label=str(sensor.get("name") or ""),
        latitude=_optional_float(sensor.get("latitude")),
        longitude=_optional_float(sensor.get("longitude")),
        stat_short=parse_float(stats.get("pm2.5_10minute")),
        stat_long=parse_float(stats.get("pm2.5_60minute")),
        from_cache=from_cache,
    )


def _parse_legacy(sensor_id: str, results: list, from_cache: bool) -> RawReading:
    primary = results[0]
    secondary = results[1] if len(results) > 1 and isinstance(results[1], dict) else None

    channel_a = parse_int(primary.get("pm2_5_cf_1"))
    channel_b = parse_int(secondary.get("pm2_5_cf_1")) if secondary is not None else channel_a

    stats: Any = primary.get("Stats")
    if isinstance(stats, str):
        try:
            stats = json.loads(stats)
        except ValueError:
            stats = {}
    if not isinstance(stats, dict):
        stats = {}

    return RawReading(
        sensor_id=sensor_id,
        pm25_raw=parse_int(primary.get("PM2_5Value")),
        pm25_cf1=(channel_a + channel_b) / 2,
        humidity=parse_int(primary.get("humidity")),
        timestamp=_optional_int(primary.get("LastSeen")),
        label=str(primary.get("Label") or ""),
        latitude=_optional_float(primary.get("Lat")),
        longitude=_optional_float(primary.get("Lon")),
        stat_short=parse_float(stats.get("v1")),
        stat_long=parse_float(stats.get("v3")),
        from_cache=from_cache,
    )


class ReadingFetcher:
    """Fetches the current reading for a sensor, falling back to the cache."""

    def __init__(
        self,
        client: PurpleAirClient,
        cache: JsonFileCache,
        max_age: timedelta = timedelta(hours=2),
        clock: Clock = utc_now,
    ) -> None:
        self.client = client
        self.cache = cache
        self.max_age = max_age
        self._clock = clock

    async def fetch(self, sensor_id: str) -> RawReading:
        try:
            payload = await self.client.get_sensor(sensor_id)
            if not is_valid_payload(payload):
                raise MalformedReadingPayload(f"Reading for sensor {sensor_id} is missing its sensor fields.")
        except (ReadingFetchFailed, MalformedReadingPayload) as exc:
            return self._from_cache(sensor_id, exc)

        self._remember(sensor_id, payload)
        return parse_payload(sensor_id, payload)

    def _remember(self, sensor_id: str, payload: Dict[str, Any]) -> None:
        entry = CachedReading(payload=payload, updated_at=self._clock())
        try:
            self.cache.save_reading(sensor_id, entry)
        except OSError:
            logger.warning(
                "Unable to cache sensor reading",
                extra={"sensor_id": sensor_id},
                exc_info=True,
            )

    def _from_cache(self, sensor_id: str, error: AirQualityError) -> RawReading:
        cached = self.cache.load_reading(sensor_id)
        if cached is None:
            raise StaleOrMissingCache(
                f"{error.message} No cached reading for sensor {sensor_id}.",
                reason=error,
            ) from error

        age = self._clock() - cached.updated_at
        if age >= self.max_age:
            raise StaleOrMissingCache(
                f"{error.message} Cached reading for sensor {sensor_id} is too old.",
                reason=error,
            ) from error

        try:
            reading = parse_payload(sensor_id, cached.payload, from_cache=True)
        except MalformedReadingPayload as exc:
            raise StaleOrMissingCache(
                f"{error.message} Cached reading for sensor {sensor_id} is unusable.",
                reason=error,
            ) from exc

        logger.warning(
            "Live reading unavailable; using cached data",
            extra={
                "sensor_id": sensor_id,
                "age_seconds": int(age.total_seconds()),
                "error_kind": error.kind,
            },
        )
        return reading
