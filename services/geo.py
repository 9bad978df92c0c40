"""Great-circle distance between two coordinates."""

from __future__ import annotations

import math

from models.records import Coordinate

EARTH_RADIUS_M = 6_371_008.8


def distance(start: Coordinate, end: Coordinate) -> float:
    """Return the haversine central angle between two points, in radians."""
    delta_lat = math.radians(end.latitude - start.latitude)
    delta_lon = math.radians(end.longitude - start.longitude)
    start_lat = math.radians(start.latitude)
    end_lat = math.radians(end.latitude)

    angle = (
        math.sin(delta_lat / 2) ** 2
        + math.sin(delta_lon / 2) ** 2 * math.cos(start_lat) * math.cos(end_lat)
    )
    return 2 * math.atan2(math.sqrt(angle), math.sqrt(1 - angle))


def distance_meters(start: Coordinate, end: Coordinate) -> float:
    return distance(start, end) * EARTH_RADIUS_M
