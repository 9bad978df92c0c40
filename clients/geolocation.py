"""Sources for the caller's current position."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

import httpx

from models.records import Coordinate
from services.errors import GeolocationUnavailable

logger = logging.getLogger(__name__)


class GeolocationProvider(Protocol):
    async def current(self) -> Coordinate: ...

    async def aclose(self) -> None: ...


class StaticGeolocation:
    """Always reports the configured coordinate."""

    def __init__(self, coordinate: Optional[Coordinate]) -> None:
        self._coordinate = coordinate

    async def current(self) -> Coordinate:
        if self._coordinate is None:
            raise GeolocationUnavailable("No location configured.")
        return self._coordinate

    async def aclose(self) -> None:
        return None


class IPGeolocation:
    """Looks up an approximate position from a JSON IP-geolocation service."""

    def __init__(
        self,
        url: str,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.url = url
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def current(self) -> Coordinate:
        try:
            response = await self._client.get(self.url)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as exc:
            raise GeolocationUnavailable(f"Geolocation lookup failed: {exc}") from exc
        except ValueError as exc:
            raise GeolocationUnavailable("Geolocation service returned invalid JSON.") from exc

        coordinate = _coordinate_from(payload)
        if coordinate is None:
            raise GeolocationUnavailable("Geolocation service returned no coordinates.")
        logger.debug("Located at %.4f, %.4f", coordinate.latitude, coordinate.longitude)
        return coordinate


def _coordinate_from(payload: Any) -> Optional[Coordinate]:
    if not isinstance(payload, dict):
        return None
    if payload.get("status") == "fail":
        return None
    for lat_key, lon_key in (("lat", "lon"), ("latitude", "longitude")):
        coordinate = _pair(payload, lat_key, lon_key)
        if coordinate is not None:
            return coordinate
    return None


def _pair(payload: Dict[str, Any], lat_key: str, lon_key: str) -> Optional[Coordinate]:
    if lat_key not in payload or lon_key not in payload:
        return None
    try:
        return Coordinate(latitude=float(payload[lat_key]), longitude=float(payload[lon_key]))
    except (TypeError, ValueError):
        return None
