"""Pydantic schemas for the on-disk cache entries."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class CachedSensorId(BaseModel):
    """Last successfully resolved nearest sensor."""

    model_config = ConfigDict(frozen=True)

    sensor_id: str = Field(..., min_length=1)
    updated_at: datetime

    @field_validator("sensor_id", mode="before")
    @classmethod
    def _coerce_sensor_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("updated_at")
    @classmethod
    def _normalize_updated_at(cls, value: datetime) -> datetime:
        return _as_utc(value)


class CachedReading(BaseModel):
    """Full reading payload as last returned by the API."""

    model_config = ConfigDict(frozen=True)

    payload: Dict[str, Any]
    updated_at: datetime

    @field_validator("updated_at")
    @classmethod
    def _normalize_updated_at(cls, value: datetime) -> datetime:
        return _as_utc(value)
