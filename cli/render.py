from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, Iterable

import typer

from models.records import ClassifiedReading
from services.errors import AirQualityError, ErrorKind


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _updated_at(timestamp: int | None) -> str | None:
    if timestamp is None:
        return None
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()


def reading_to_dict(reading: ClassifiedReading) -> Dict[str, Any]:
    category = reading.category
    return {
        "aqi": reading.aqi,
        "label": category.label,
        "threshold": category.threshold,
        "symbol": category.symbol,
        "colors": {
            "light": {"start": category.light.start, "end": category.light.end, "text": category.light.text},
            "dark": {"start": category.dark.start, "end": category.dark.end, "text": category.dark.text},
        },
        "trend": reading.trend.value,
        "trend_symbol": reading.trend.symbol,
        "pm_corrected": round(reading.pm_corrected, 2),
        "sensor": {
            "id": reading.sensor.sensor_id,
            "name": reading.sensor.name,
            "latitude": reading.sensor.latitude,
            "longitude": reading.sensor.longitude,
        },
        "updated_at": _updated_at(reading.timestamp),
        "from_cache": reading.from_cache,
        "map_url": reading.map_url,
    }


def render_reading(reading: ClassifiedReading, as_json: bool = False) -> None:
    payload = reading_to_dict(reading)
    if as_json:
        typer.echo(json.dumps(payload, indent=2))
        return

    echo_heading("Air Quality")
    echo_key_values(
        [
            ("aqi", "-" if payload["aqi"] is None else payload["aqi"]),
            ("level", payload["label"]),
            ("trend", payload["trend"]),
            ("pm2.5 (corrected)", payload["pm_corrected"]),
        ]
    )
    typer.echo()
    echo_heading("Sensor")
    echo_key_values(
        [
            ("id", payload["sensor"]["id"]),
            ("location", payload["sensor"]["name"]),
            ("updated", payload["updated_at"]),
            ("map", payload["map_url"]),
        ]
    )
    if reading.from_cache:
        typer.secho("Live data unavailable; showing cached reading.", fg=typer.colors.YELLOW)


def render_error(error: AirQualityError) -> None:
    if error.root_kind is ErrorKind.malformed_reading_payload:
        typer.secho("Can't reach PurpleAir.", fg=typer.colors.RED, err=True)
        return
    typer.secho(f"Error: {error.message}", fg=typer.colors.RED, err=True)
