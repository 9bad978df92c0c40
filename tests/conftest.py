"""Shared fixtures for PurpleAir payloads and a controllable clock."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict

import pytest

START = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime = START) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def current_payload() -> Callable[..., Dict[str, Any]]:
    def build(**overrides: Any) -> Dict[str, Any]:
        sensor: Dict[str, Any] = {
            "sensor_index": 69223,
            "name": "Backyard",
            "latitude": 37.8,
            "longitude": -122.27,
            "last_seen": 1717243200,
            "humidity": 40,
            "pm2.5": 12.3,
            "pm2.5_cf_1": 20.7,
            "stats": {
                "pm2.5": 12.3,
                "pm2.5_10minute": 10.0,
                "pm2.5_30minute": 11.0,
                "pm2.5_60minute": 20.0,
            },
        }
        sensor.update(overrides)
        return {"api_version": "V1.0.11-0.0.49", "time_stamp": 1717243260, "sensor": sensor}

    return build


@pytest.fixture()
def legacy_payload() -> Callable[..., Dict[str, Any]]:
    def build(**overrides: Any) -> Dict[str, Any]:
        primary: Dict[str, Any] = {
            "ID": 69223,
            "Label": "Backyard",
            "Lat": 37.8,
            "Lon": -122.27,
            "PM2_5Value": "12.30",
            "pm2_5_cf_1": "21.40",
            "humidity": "40",
            "LastSeen": 1717243200,
            "Stats": json.dumps({"v": 12.3, "v1": 10.0, "v2": 11.0, "v3": 20.0}),
        }
        primary.update(overrides)
        secondary = {"ID": 69224, "ParentID": 69223, "pm2_5_cf_1": "19.80"}
        return {"mapVersion": "0.18", "results": [primary, secondary]}

    return build
