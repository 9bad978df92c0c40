"""Nearest-sensor resolution with a time-bounded cache."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Iterable, Optional

from clients.geolocation import GeolocationProvider
from clients.purpleair import DirectorySensor, PurpleAirClient
from models.records import Clock, Coordinate, utc_now
from models.schemas import CachedSensorId
from services.errors import AirQualityError, NoSensorFound
from services.geo import distance, distance_meters
from storage.cache import JsonFileCache

logger = logging.getLogger(__name__)


def nearest_sensor(location: Coordinate, sensors: Iterable[DirectorySensor]) -> Optional[DirectorySensor]:
    """Return the sensor closest to ``location``; the first one wins ties."""
    closest: Optional[DirectorySensor] = None
    closest_distance = float("inf")
    for sensor in sensors:
        candidate = distance(location, sensor.coordinate)
        if candidate < closest_distance:
            closest_distance = candidate
            closest = sensor
    return closest


class SensorResolver:
    """Works out which sensor id a run should read from."""

    def __init__(
        self,
        client: PurpleAirClient,
        geolocation: GeolocationProvider,
        cache: JsonFileCache,
        ttl: timedelta = timedelta(minutes=15),
        bound_offset: float = 0.05,
        default_sensor_id: Optional[str] = None,
        clock: Clock = utc_now,
    ) -> None:
        self.client = client
        self.geolocation = geolocation
        self.cache = cache
        self.ttl = ttl
        self.bound_offset = bound_offset
        self.default_sensor_id = default_sensor_id
        self._clock = clock

    async def resolve(
        self,
        explicit_id: Optional[str] = None,
        location: Optional[Coordinate] = None,
    ) -> str:
        if explicit_id is not None and str(explicit_id).strip():
            return str(explicit_id).strip()

        now = self._clock()
        cached = self.cache.load_sensor_id()
        if cached is not None and now - cached.updated_at < self.ttl:
            logger.debug("Using cached sensor id", extra={"sensor_id": cached.sensor_id})
            return cached.sensor_id

        try:
            sensor = await self._lookup(location)
        except AirQualityError as exc:
            return self._fall_back(cached, exc)

        self.cache.save_sensor_id(CachedSensorId(sensor_id=sensor.sensor_id, updated_at=now))
        logger.info(
            "Resolved nearest sensor %s",
            sensor.name or sensor.sensor_id,
            extra={"sensor_id": sensor.sensor_id},
        )
        return sensor.sensor_id

    async def _lookup(self, location: Optional[Coordinate]) -> DirectorySensor:
        here = location if location is not None else await self.geolocation.current()
        north_west = Coordinate(
            latitude=here.latitude + self.bound_offset,
            longitude=here.longitude - self.bound_offset,
        )
        south_east = Coordinate(
            latitude=here.latitude - self.bound_offset,
            longitude=here.longitude + self.bound_offset,
        )
        sensors = await self.client.list_sensors(north_west, south_east)
        closest = nearest_sensor(here, sensors)
        if closest is None:
            raise NoSensorFound(
                f"No outdoor sensor within {self.bound_offset} degrees of "
                f"{here.latitude:.4f}, {here.longitude:.4f}."
            )
        logger.debug(
            "Nearest of %d sensors",
            len(sensors),
            extra={
                "sensor_id": closest.sensor_id,
                "distance_m": round(distance_meters(here, closest.coordinate)),
            },
        )
        return closest

    def _fall_back(self, cached: Optional[CachedSensorId], error: AirQualityError) -> str:
        if cached is not None:
            logger.warning(
                "Sensor resolution failed; using last known sensor",
                extra={
                    "sensor_id": cached.sensor_id,
                    "reason": error.message,
                    "error_kind": error.kind,
                },
            )
            return cached.sensor_id
        if self.default_sensor_id:
            logger.warning(
                "Sensor resolution failed; using default sensor",
                extra={
                    "sensor_id": self.default_sensor_id,
                    "reason": error.message,
                    "error_kind": error.kind,
                },
            )
            return self.default_sensor_id
        if isinstance(error, NoSensorFound):
            raise error
        raise NoSensorFound(f"Unable to resolve a sensor: {error.message}") from error
