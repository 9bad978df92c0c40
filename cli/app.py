from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import NoReturn, Optional

import typer

from cli.render import render_error, render_reading
from logging_config import configure_logging
from models.records import ClassifiedReading
from services.errors import AirQualityError, ErrorKind
from services.pipeline import AirQualityService, build_default_service
from settings import Settings, get_settings

UNREACHABLE_EXIT_CODE = 2


@dataclass
class CLIState:
    settings: Settings
    correction: Optional[str] = None


app = typer.Typer(
    help="Air quality index from the nearest PurpleAir sensor.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


def _build_service(state: CLIState) -> AirQualityService:
    try:
        return build_default_service(state.settings, correction=state.correction)
    except ValueError as exc:
        param_hint = "--correction" if state.correction is not None else None
        raise typer.BadParameter(str(exc), param_hint=param_hint) from exc


def _fail(error: AirQualityError) -> NoReturn:
    render_error(error)
    if error.root_kind is ErrorKind.malformed_reading_payload:
        raise typer.Exit(code=UNREACHABLE_EXIT_CODE)
    raise typer.Exit(code=1)


async def _current_reading(service: AirQualityService, sensor_id: Optional[str]) -> ClassifiedReading:
    try:
        return await service.current_reading(sensor_id=sensor_id)
    finally:
        await service.aclose()


async def _resolve(service: AirQualityService, sensor_id: Optional[str]) -> str:
    try:
        return await service.resolve_sensor(sensor_id=sensor_id)
    finally:
        await service.aclose()


@app.callback()
def main(
    ctx: typer.Context,
    correction: Optional[str] = typer.Option(
        None,
        "--correction",
        "-c",
        help="PM2.5 correction formula: epa2021 or linear (defaults to PURPLEAIR_CORRECTION).",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Logging level (defaults to LOG_LEVEL env or INFO).",
    ),
) -> None:
    """Entry point for the CLI."""
    configure_logging(log_level.upper() if log_level else None)
    ctx.obj = CLIState(settings=get_settings(), correction=correction)


@app.command("current")
def current_command(
    ctx: typer.Context,
    sensor_id: Optional[str] = typer.Option(
        None,
        "--sensor-id",
        "-s",
        help="Read this sensor instead of the nearest one (defaults to PURPLEAIR_SENSOR_ID).",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the reading as JSON."),
) -> None:
    """Show the current AQI, level, and trend."""
    state = _get_state(ctx)
    override = sensor_id or state.settings.sensor_id
    try:
        service = _build_service(state)
        reading = asyncio.run(_current_reading(service, override))
    except AirQualityError as exc:
        _fail(exc)
    render_reading(reading, as_json=as_json)


@app.command("sensor-id")
def sensor_id_command(ctx: typer.Context) -> None:
    """Print the sensor id a run would read from."""
    state = _get_state(ctx)
    try:
        service = _build_service(state)
        resolved = asyncio.run(_resolve(service, state.settings.sensor_id))
    except AirQualityError as exc:
        _fail(exc)
    typer.echo(resolved)
