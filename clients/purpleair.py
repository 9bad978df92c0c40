"""HTTP client for both generations of the PurpleAir API."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import httpx

from models.records import Coordinate
from services.errors import (
    DirectoryLookupFailed,
    MalformedReadingPayload,
    MissingCredentials,
    ReadingFetchFailed,
)

logger = logging.getLogger(__name__)

CURRENT = "current"
LEGACY = "legacy"

RATE_LIMIT = 429
OUTDOOR = 0

_CURRENT_DIRECTORY_FIELDS = ("sensor_index", "name", "latitude", "longitude")
_LEGACY_DIRECTORY_OPTIONS = "1/mAQI/a10/cC5"


@dataclass(frozen=True, slots=True)
class DirectorySensor:
    """One row of a sensor directory lookup."""

    sensor_id: str
    name: str
    coordinate: Coordinate


class PurpleAirClient:
    """Directory and reading lookups against PurpleAir.

    The ``current`` generation is the keyed ``api.purpleair.com`` REST API;
    ``legacy`` is the unauthenticated ``www.purpleair.com`` JSON endpoints.
    """

    def __init__(
        self,
        api_url: str,
        legacy_api_url: str,
        api_key: Optional[str] = None,
        generation: str = CURRENT,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        if generation not in (CURRENT, LEGACY):
            raise ValueError(f"Unknown PurpleAir API generation {generation!r}.")
        if generation == CURRENT and not api_key:
            raise MissingCredentials(
                "PurpleAir API key is required; set PURPLEAIR_API_KEY or use the legacy API."
            )
        self.generation = generation
        self._api_url = api_url.rstrip("/")
        self._legacy_api_url = legacy_api_url.rstrip("/")
        self._api_key = api_key
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def list_sensors(self, north_west: Coordinate, south_east: Coordinate) -> List[DirectorySensor]:
        """Return outdoor sensors inside the bounding box."""
        if self.generation == CURRENT:
            url = f"{self._api_url}/v1/sensors"
            params: Dict[str, Any] = {
                "fields": ",".join(_CURRENT_DIRECTORY_FIELDS[1:]),
                "location_type": OUTDOOR,
                "nwlng": north_west.longitude,
                "nwlat": north_west.latitude,
                "selng": south_east.longitude,
                "selat": south_east.latitude,
            }
        else:
            url = f"{self._legacy_api_url}/data.json"
            params = {
                "opt": _LEGACY_DIRECTORY_OPTIONS,
                "fetch": "true",
                "nwlat": north_west.latitude,
                "selat": south_east.latitude,
                "nwlng": north_west.longitude,
                "selng": south_east.longitude,
                "fields": "ID",
            }

        try:
            response = await self._client.get(url, params=params, headers=self._headers())
        except httpx.HTTPError as exc:
            raise DirectoryLookupFailed(f"Sensor directory request failed: {exc}") from exc

        if response.status_code == RATE_LIMIT:
            raise DirectoryLookupFailed("Sensor directory rate limit reached.", rate_limited=True)
        try:
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            raise DirectoryLookupFailed(
                f"Sensor directory returned status {exc.response.status_code}."
            ) from exc
        except ValueError as exc:
            raise DirectoryLookupFailed("Sensor directory returned invalid JSON.") from exc

        if not isinstance(payload, dict):
            raise DirectoryLookupFailed("Sensor directory returned an unexpected payload.")
        if payload.get("code") == RATE_LIMIT:
            raise DirectoryLookupFailed("Sensor directory rate limit reached.", rate_limited=True)

        if self.generation == CURRENT:
            return _parse_current_directory(payload)
        return _parse_legacy_directory(payload)

    async def get_sensor(self, sensor_id: str) -> Dict[str, Any]:
        """Fetch the raw reading document for one sensor."""
        if self.generation == CURRENT:
            url = f"{self._api_url}/v1/sensors/{sensor_id}"
            params: Dict[str, Any] = {}
        else:
            url = f"{self._legacy_api_url}/json"
            params = {"show": sensor_id}

        try:
            response = await self._client.get(url, params=params, headers=self._headers())
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "Sensor reading request rejected",
                extra={"sensor_id": sensor_id, "status_code": exc.response.status_code},
            )
            raise ReadingFetchFailed(
                f"Reading request for sensor {sensor_id} returned status {exc.response.status_code}."
            ) from exc
        except httpx.HTTPError as exc:
            raise ReadingFetchFailed(f"Reading request for sensor {sensor_id} failed: {exc}") from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise MalformedReadingPayload(
                f"Reading for sensor {sensor_id} is not valid JSON."
            ) from exc
        if not isinstance(payload, dict):
            raise MalformedReadingPayload(f"Reading for sensor {sensor_id} is not a JSON object.")
        return payload

    def _headers(self) -> Dict[str, str]:
        if self.generation == CURRENT and self._api_key:
            return {"X-API-Key": self._api_key}
        return {}


def _column(fields: Sequence[Any], name: str, default: Optional[int]) -> Optional[int]:
    try:
        return list(fields).index(name)
    except ValueError:
        return default


def _cell(row: Sequence[Any], index: Optional[int]) -> Any:
    if index is None or index >= len(row):
        return None
    return row[index]


def _build_sensor(raw_id: Any, name: Any, lat: Any, lon: Any) -> Optional[DirectorySensor]:
    if raw_id is None:
        return None
    try:
        coordinate = Coordinate(latitude=float(lat), longitude=float(lon))
    except (TypeError, ValueError):
        return None
    return DirectorySensor(
        sensor_id=str(raw_id),
        name="" if name is None else str(name),
        coordinate=coordinate,
    )


def _rows(payload: Dict[str, Any]) -> List[Sequence[Any]]:
    data = payload.get("data")
    if not isinstance(data, list):
        raise DirectoryLookupFailed("Sensor directory payload has no data rows.")
    return [row for row in data if isinstance(row, (list, tuple))]


def _parse_current_directory(payload: Dict[str, Any]) -> List[DirectorySensor]:
    fields = payload.get("fields") or list(_CURRENT_DIRECTORY_FIELDS)
    if not isinstance(fields, list):
        raise DirectoryLookupFailed("Sensor directory payload has no field list.")
    id_index = _column(fields, "sensor_index", 0)
    name_index = _column(fields, "name", None)
    lat_index = _column(fields, "latitude", None)
    lon_index = _column(fields, "longitude", None)

    sensors: List[DirectorySensor] = []
    for row in _rows(payload):
        sensor = _build_sensor(
            _cell(row, id_index),
            _cell(row, name_index),
            _cell(row, lat_index),
            _cell(row, lon_index),
        )
        if sensor is not None:
            sensors.append(sensor)
    return sensors


def _parse_legacy_directory(payload: Dict[str, Any]) -> List[DirectorySensor]:
    fields = payload.get("fields")
    if not isinstance(fields, list):
        raise DirectoryLookupFailed("Sensor directory payload has no field list.")
    id_index = _column(fields, "ID", None)
    lat_index = _column(fields, "Lat", None)
    lon_index = _column(fields, "Lon", None)
    type_index = _column(fields, "Type", None)
    label_index = _column(fields, "Label", None)
    if id_index is None or lat_index is None or lon_index is None:
        raise DirectoryLookupFailed("Sensor directory payload is missing ID/Lat/Lon columns.")

    sensors: List[DirectorySensor] = []
    for row in _rows(payload):
        if type_index is not None and _cell(row, type_index) != OUTDOOR:
            continue
        sensor = _build_sensor(
            _cell(row, id_index),
            _cell(row, label_index),
            _cell(row, lat_index),
            _cell(row, lon_index),
        )
        if sensor is not None:
            sensors.append(sensor)
    return sensors
