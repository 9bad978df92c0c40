from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import List, Optional

import pytest
from typer.testing import CliRunner

from cli.app import app
from models.categories import AQI_CATEGORIES
from models.records import ClassifiedReading, SensorLocation, TrendDirection
from services.errors import (
    MalformedReadingPayload,
    MissingCredentials,
    ReadingFetchFailed,
    StaleOrMissingCache,
)
from settings import get_settings


def _reading(from_cache: bool = False) -> ClassifiedReading:
    return ClassifiedReading(
        aqi=52,
        category=AQI_CATEGORIES[4],
        trend=TrendDirection.falling,
        sensor=SensorLocation(
            sensor_id="69223",
            name="Backyard",
            latitude=37.8,
            longitude=-122.27,
            resolved_at=datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc),
        ),
        timestamp=1717243200,
        pm_corrected=12.782,
        from_cache=from_cache,
    )


class StubService:
    def __init__(self, reading: Optional[ClassifiedReading] = None, error: Optional[Exception] = None) -> None:
        self.reading = reading or _reading()
        self.error = error
        self.requested: List[Optional[str]] = []
        self.closed = False

    async def current_reading(self, sensor_id: Optional[str] = None, location=None) -> ClassifiedReading:
        self.requested.append(sensor_id)
        if self.error is not None:
            raise self.error
        return self.reading

    async def resolve_sensor(self, sensor_id: Optional[str] = None, location=None) -> str:
        self.requested.append(sensor_id)
        if self.error is not None:
            raise self.error
        return sensor_id or "69223"

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture()
def runner(monkeypatch) -> CliRunner:
    monkeypatch.delenv("PURPLEAIR_SENSOR_ID", raising=False)
    get_settings.cache_clear()
    yield CliRunner()
    get_settings.cache_clear()


def _install_stub(monkeypatch, stub: StubService) -> dict:
    captured: dict = {}

    def factory(settings, correction=None):
        captured["correction"] = correction
        return stub

    monkeypatch.setattr("cli.app.build_default_service", factory)
    return captured


def test_current_prints_reading(monkeypatch, runner: CliRunner) -> None:
    stub = StubService()
    _install_stub(monkeypatch, stub)

    result = runner.invoke(app, ["current"])

    assert result.exit_code == 0
    assert "aqi: 52" in result.stdout
    assert "level: Moderate" in result.stdout
    assert "trend: falling" in result.stdout
    assert "location: Backyard" in result.stdout
    assert stub.requested == [None]
    assert stub.closed is True


def test_current_json_output(monkeypatch, runner: CliRunner) -> None:
    _install_stub(monkeypatch, StubService())

    result = runner.invoke(app, ["current", "--json"])

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["aqi"] == 52
    assert payload["label"] == "Moderate"
    assert payload["trend_symbol"] == "arrow.down"
    assert payload["colors"]["dark"]["text"] == "ffff00"
    assert payload["sensor"]["id"] == "69223"
    assert payload["updated_at"] == "2024-06-01T12:00:00+00:00"


def test_sensor_id_option_and_correction_are_forwarded(monkeypatch, runner: CliRunner) -> None:
    stub = StubService()
    captured = _install_stub(monkeypatch, stub)

    result = runner.invoke(app, ["--correction", "linear", "current", "--sensor-id", "4242"])

    assert result.exit_code == 0
    assert stub.requested == ["4242"]
    assert captured["correction"] == "linear"


def test_sensor_id_env_override(monkeypatch, runner: CliRunner) -> None:
    monkeypatch.setenv("PURPLEAIR_SENSOR_ID", "777")
    stub = StubService()
    _install_stub(monkeypatch, stub)

    result = runner.invoke(app, ["sensor-id"])

    assert result.exit_code == 0
    assert result.stdout.strip() == "777"


def test_cached_reading_is_flagged(monkeypatch, runner: CliRunner) -> None:
    _install_stub(monkeypatch, StubService(reading=_reading(from_cache=True)))

    result = runner.invoke(app, ["current"])

    assert result.exit_code == 0
    assert "showing cached reading" in result.stdout


def test_malformed_payload_renders_unreachable_state(monkeypatch, runner: CliRunner) -> None:
    error = StaleOrMissingCache("No cached reading.", reason=MalformedReadingPayload("bad"))
    _install_stub(monkeypatch, StubService(error=error))

    result = runner.invoke(app, ["current"])

    assert result.exit_code == 2
    assert "Can't reach PurpleAir." in result.output


def test_generic_failure_renders_message(monkeypatch, runner: CliRunner) -> None:
    error = StaleOrMissingCache("Cached reading is too old.", reason=ReadingFetchFailed("offline"))
    _install_stub(monkeypatch, StubService(error=error))

    result = runner.invoke(app, ["current"])

    assert result.exit_code == 1
    assert "Error: Cached reading is too old." in result.output


def test_missing_credentials_is_fatal(monkeypatch, runner: CliRunner) -> None:
    def factory(settings, correction=None):
        raise MissingCredentials("PurpleAir API key is required.")

    monkeypatch.setattr("cli.app.build_default_service", factory)

    result = runner.invoke(app, ["current"])

    assert result.exit_code == 1
    assert "API key is required" in result.output


def test_unknown_correction_is_bad_parameter(monkeypatch, runner: CliRunner) -> None:
    def factory(settings, correction=None):
        raise ValueError("Unknown correction strategy 'x'")

    monkeypatch.setattr("cli.app.build_default_service", factory)

    result = runner.invoke(app, ["--correction", "x", "current"])

    assert result.exit_code == 2
    assert "Unknown correction strategy" in result.output


def test_invalid_service_configuration_without_option_does_not_blame_it(monkeypatch, runner: CliRunner) -> None:
    def factory(settings, correction=None):
        raise ValueError("Unknown correction strategy 'x'")

    monkeypatch.setattr("cli.app.build_default_service", factory)

    result = runner.invoke(app, ["current"])

    assert result.exit_code == 2
    assert "Unknown correction strategy" in result.output
    assert "--correction" not in result.output
