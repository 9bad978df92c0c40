"""PM2.5 concentration to AQI via the EPA breakpoint table."""

from __future__ import annotations

import math
from typing import Optional, Tuple

# (lower bound, Ih, Il, BPh, BPl); a band applies when the concentration is
# strictly above its lower bound, except the last which is inclusive.
_BREAKPOINTS: Tuple[Tuple[float, float, float, float, float], ...] = (
    (350.5, 500.0, 401.0, 500.0, 350.5),
    (250.5, 400.0, 301.0, 350.4, 250.5),
    (150.5, 300.0, 201.0, 250.4, 150.5),
    (55.5, 200.0, 151.0, 150.4, 55.5),
    (35.5, 150.0, 101.0, 55.4, 35.5),
    (12.1, 100.0, 51.0, 35.4, 12.1),
)
_LOWEST_BAND = (50.0, 0.0, 12.0, 0.0)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, .5 going up (``round`` would go to even)."""
    return int(math.floor(value + 0.5))


def interpolate(concentration: float, i_high: float, i_low: float, bp_high: float, bp_low: float) -> int:
    slope = (i_high - i_low) / (bp_high - bp_low)
    return round_half_up(slope * (concentration - bp_low) + i_low)


class AQIConverter:
    """Maps a corrected PM2.5 concentration onto the AQI scale."""

    def to_aqi(self, pm_corrected: float) -> Optional[int]:
        """Return the AQI for ``pm_corrected``, or ``None`` below zero or for ``nan``."""
        for lower, i_high, i_low, bp_high, bp_low in _BREAKPOINTS:
            if pm_corrected > lower:
                return interpolate(pm_corrected, i_high, i_low, bp_high, bp_low)
        if pm_corrected >= 0.0:
            return interpolate(pm_corrected, *_LOWEST_BAND)
        return None
