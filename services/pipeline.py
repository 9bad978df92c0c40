"""Orchestration of one air quality run, from sensor lookup to category."""

from __future__ import annotations

import logging
import math
from datetime import timedelta
from typing import Optional

from clients.geolocation import GeolocationProvider, IPGeolocation, StaticGeolocation
from clients.purpleair import PurpleAirClient
from models.records import (
    ClassifiedReading,
    Clock,
    Coordinate,
    RawReading,
    SensorLocation,
    utc_now,
)
from services.aqi import AQIConverter
from services.classifier import LevelClassifier
from services.corrector import PMCorrector
from services.errors import InvalidMeasurement
from services.fetcher import ReadingFetcher
from services.resolver import SensorResolver
from services.trend import TrendAnalyzer
from settings import Settings, get_settings
from storage.cache import build_default_cache

logger = logging.getLogger(__name__)


class AirQualityService:
    """Coordinates resolution, retrieval, and the numeric pipeline."""

    def __init__(
        self,
        resolver: SensorResolver,
        fetcher: ReadingFetcher,
        corrector: PMCorrector,
        converter: AQIConverter,
        classifier: LevelClassifier,
        trend_analyzer: TrendAnalyzer,
        clock: Clock = utc_now,
    ) -> None:
        self.resolver = resolver
        self.fetcher = fetcher
        self.corrector = corrector
        self.converter = converter
        self.classifier = classifier
        self.trend_analyzer = trend_analyzer
        self._clock = clock

    async def resolve_sensor(
        self,
        sensor_id: Optional[str] = None,
        location: Optional[Coordinate] = None,
    ) -> str:
        return await self.resolver.resolve(explicit_id=sensor_id, location=location)

    async def current_reading(
        self,
        sensor_id: Optional[str] = None,
        location: Optional[Coordinate] = None,
    ) -> ClassifiedReading:
        """Run the full pipeline and return the classified reading.

        Raises an ``AirQualityError`` subclass when no usable reading exists.
        """
        resolved_id = await self.resolve_sensor(sensor_id, location)
        logger.info("Using sensor %s", resolved_id, extra={"sensor_id": resolved_id})

        reading = await self.fetcher.fetch(resolved_id)
        return self.classify(reading)

    def classify(self, reading: RawReading) -> ClassifiedReading:
        if math.isnan(reading.pm25_cf1) or math.isnan(reading.humidity):
            raise InvalidMeasurement(
                f"Sensor {reading.sensor_id} reported a non-numeric PM2.5 or humidity value."
            )

        pm_corrected = self.corrector.correct(reading.pm25_cf1, reading.humidity)
        aqi = self.converter.to_aqi(pm_corrected)
        category = self.classifier.classify(aqi)
        trend = self.trend_analyzer.trend(reading.stat_short, reading.stat_long)

        sensor = SensorLocation(
            sensor_id=reading.sensor_id,
            name=reading.label,
            latitude=reading.latitude,
            longitude=reading.longitude,
            resolved_at=self._clock(),
        )
        logger.debug(
            "AQI %s (%s), trend %s",
            aqi,
            category.label,
            trend.value,
            extra={"sensor_id": reading.sensor_id},
        )
        return ClassifiedReading(
            aqi=aqi,
            category=category,
            trend=trend,
            sensor=sensor,
            timestamp=reading.timestamp,
            pm_corrected=pm_corrected,
            from_cache=reading.from_cache,
        )

    async def aclose(self) -> None:
        await self.fetcher.client.aclose()
        await self.resolver.geolocation.aclose()


def build_geolocation(settings: Settings) -> GeolocationProvider:
    if settings.latitude is not None and settings.longitude is not None:
        return StaticGeolocation(Coordinate(latitude=settings.latitude, longitude=settings.longitude))
    return IPGeolocation(settings.geolocation_url, timeout=settings.http_timeout)


def build_default_service(
    settings: Optional[Settings] = None,
    correction: Optional[str] = None,
) -> AirQualityService:
    """Factory that wires the service from environment settings.

    Raises ``MissingCredentials`` before any network traffic when the keyed
    API is selected without a key.
    """
    settings = settings or get_settings()
    corrector = PMCorrector(correction or settings.correction)
    client = PurpleAirClient(
        api_url=settings.api_url,
        legacy_api_url=settings.legacy_api_url,
        api_key=settings.api_key,
        generation=settings.api_generation,
        timeout=settings.http_timeout,
    )
    cache = build_default_cache(settings.cache_dir)
    resolver = SensorResolver(
        client=client,
        geolocation=build_geolocation(settings),
        cache=cache,
        ttl=timedelta(seconds=settings.resolution_ttl),
        bound_offset=settings.bound_offset,
        default_sensor_id=settings.default_sensor_id,
    )
    fetcher = ReadingFetcher(
        client=client,
        cache=cache,
        max_age=timedelta(seconds=settings.reading_max_age),
    )
    return AirQualityService(
        resolver=resolver,
        fetcher=fetcher,
        corrector=corrector,
        converter=AQIConverter(),
        classifier=LevelClassifier(),
        trend_analyzer=TrendAnalyzer(),
    )
