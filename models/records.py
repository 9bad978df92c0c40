"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

from models.categories import AQICategory

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class Coordinate:
    """A WGS84 position in degrees."""

    latitude: float
    longitude: float


@dataclass(frozen=True, slots=True)
class SensorLocation:
    """Where the reading came from and when the sensor was resolved."""

    sensor_id: str
    name: str
    latitude: Optional[float]
    longitude: Optional[float]
    resolved_at: datetime


@dataclass(frozen=True, slots=True)
class RawReading:
    """A single sensor reading parsed from a PurpleAir payload.

    PM and humidity values are integer-parsed and may be ``nan`` when the
    payload carried something non-numeric.
    """

    sensor_id: str
    pm25_raw: float
    pm25_cf1: float
    humidity: float
    timestamp: Optional[int]
    label: str
    latitude: Optional[float]
    longitude: Optional[float]
    stat_short: float
    stat_long: float
    from_cache: bool = False


class TrendDirection(str, Enum):
    """Short-term trend of the PM2.5 concentration."""

    rising = "rising"
    falling = "falling"
    steady = "steady"

    @property
    def symbol(self) -> str:
        return _TREND_SYMBOLS[self]


_TREND_SYMBOLS = {
    TrendDirection.rising: "arrow.up",
    TrendDirection.falling: "arrow.down",
    TrendDirection.steady: "arrow.left.and.right",
}


@dataclass(frozen=True, slots=True)
class ClassifiedReading:
    """Final output handed to whatever renders the reading."""

    aqi: Optional[int]
    category: AQICategory
    trend: TrendDirection
    sensor: SensorLocation
    timestamp: Optional[int]
    pm_corrected: float
    from_cache: bool = False

    @property
    def map_url(self) -> str:
        return (
            "https://www.purpleair.com/map?opt=1/i/mAQI/a10/cC5"
            f"&select={self.sensor.sensor_id}#14/{self.sensor.latitude}/{self.sensor.longitude}"
        )
