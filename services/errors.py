"""Error types raised by the air quality pipeline."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    geolocation_unavailable = "geolocation_unavailable"
    directory_lookup_failed = "directory_lookup_failed"
    no_sensor_found = "no_sensor_found"
    reading_fetch_failed = "reading_fetch_failed"
    malformed_reading_payload = "malformed_reading_payload"
    stale_or_missing_cache = "stale_or_missing_cache"
    missing_credentials = "missing_credentials"
    invalid_measurement = "invalid_measurement"


class AirQualityError(Exception):
    """Base class for every failure the pipeline reports.

    ``kind`` tags the failure so callers can pick a display state without
    matching on messages.
    """

    kind: ErrorKind

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def root_kind(self) -> ErrorKind:
        return self.kind


class GeolocationUnavailable(AirQualityError):
    kind = ErrorKind.geolocation_unavailable


class DirectoryLookupFailed(AirQualityError):
    kind = ErrorKind.directory_lookup_failed

    def __init__(self, message: str, rate_limited: bool = False) -> None:
        super().__init__(message)
        self.rate_limited = rate_limited


class NoSensorFound(AirQualityError):
    kind = ErrorKind.no_sensor_found


class ReadingFetchFailed(AirQualityError):
    kind = ErrorKind.reading_fetch_failed


class MalformedReadingPayload(AirQualityError):
    kind = ErrorKind.malformed_reading_payload


class MissingCredentials(AirQualityError):
    kind = ErrorKind.missing_credentials


class InvalidMeasurement(AirQualityError):
    kind = ErrorKind.invalid_measurement


class StaleOrMissingCache(AirQualityError):
    """No usable cached reading to stand in for a failed live fetch."""

    kind = ErrorKind.stale_or_missing_cache

    def __init__(self, message: str, reason: Optional[AirQualityError] = None) -> None:
        super().__init__(message)
        self.reason = reason

    @property
    def root_kind(self) -> ErrorKind:
        if self.reason is not None:
            return self.reason.root_kind
        return self.kind
