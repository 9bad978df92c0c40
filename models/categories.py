"""AQI category table, ordered by descending threshold."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True, slots=True)
class ColorScheme:
    start: str
    end: str
    text: str


@dataclass(frozen=True, slots=True)
class AQICategory:
    """A band of the AQI scale with its display attributes.

    A reading belongs to the first category (in table order) whose
    ``threshold`` it exceeds.
    """

    threshold: int
    label: str
    light: ColorScheme
    dark: ColorScheme
    symbol: str


AQI_CATEGORIES: Tuple[AQICategory, ...] = (
    AQICategory(
        threshold=300,
        label="Hazardous",
        light=ColorScheme(start="9e2043", end="7e0023", text="ffffff"),
        dark=ColorScheme(start="9e2043", end="7e0023", text="bbbbbb"),
        symbol="aqi.hazardous",
    ),
    AQICategory(
        threshold=200,
        label="Very Unhealthy",
        light=ColorScheme(start="edc4ff", end="edc4ff", text="8f3f97"),
        dark=ColorScheme(start="8f3f97", end="6f1f77", text="ffffff"),
        symbol="aqi.very_unhealthy",
    ),
    AQICategory(
        threshold=150,
        label="Unhealthy",
        light=ColorScheme(start="FF3D3D", end="D60000", text="000000"),
        dark=ColorScheme(start="820a00", end="530500", text="999999"),
        symbol="aqi.unhealthy",
    ),
    AQICategory(
        threshold=100,
        label="Unhealthy for Sensitive Groups",
        light=ColorScheme(start="facc00", end="faa003", text="000000"),
        dark=ColorScheme(start="333333", end="000000", text="ff7600"),
        symbol="aqi.sensitive",
    ),
    AQICategory(
        threshold=50,
        label="Moderate",
        light=ColorScheme(start="ffff00", end="dddd00", text="000000"),
        dark=ColorScheme(start="333333", end="000000", text="ffff00"),
        symbol="aqi.moderate",
    ),
    AQICategory(
        threshold=-20,
        label="Good",
        light=ColorScheme(start="00ff00", end="00bb00", text="000000"),
        dark=ColorScheme(start="005500", end="003300", text="ffffff"),
        symbol="aqi.good",
    ),
)
