"""EPA correction of PurpleAir PM2.5 readings.

Two correction formulas are supported and selected by name:

``linear``
    The 2020 EPA draft adjustment for wood smoke,
    ``0.52 * pm - 0.085 * rh + 5.71``.

``epa2021``
    The 2021 EPA revision, which keeps the linear fit at low concentrations,
    switches to steeper fits for smoke-level concentrations, and blends
    between neighbouring fits across 30-50 and 210-260 µg/m³ so the curve
    has no jumps.
"""

from __future__ import annotations

import logging
import math
from typing import Callable, Dict

logger = logging.getLogger(__name__)

LINEAR = "linear"
EPA_2021 = "epa2021"


def linear_correction(pm: float, humidity: float) -> float:
    return 0.52 * pm - 0.085 * humidity + 5.71


def epa2021_correction(pm: float, humidity: float) -> float:
    if math.isnan(pm) or math.isnan(humidity):
        return math.nan

    if pm < 30:
        return 0.524 * pm - 0.0862 * humidity + 5.75
    if pm < 50:
        blend = pm / 20 - 3 / 2
        return (0.786 * blend + 0.524 * (1 - blend)) * pm - 0.0862 * humidity + 5.75
    if pm < 210:
        return 0.786 * pm - 0.0862 * humidity + 5.75
    if pm < 260:
        blend = pm / 50 - 21 / 5
        return (
            (0.69 * blend + 0.786 * (1 - blend)) * pm
            - 0.0862 * humidity * (1 - blend)
            + 2.966 * blend
            + 5.75 * (1 - blend)
            + 8.84e-4 * pm**2 * blend
        )
    return 2.966 + 0.69 * pm + 8.84e-4 * pm**2


STRATEGIES: Dict[str, Callable[[float, float], float]] = {
    LINEAR: linear_correction,
    EPA_2021: epa2021_correction,
}


class PMCorrector:
    """Applies one named correction strategy to raw PM2.5 values."""

    def __init__(self, strategy: str = EPA_2021) -> None:
        name = strategy.strip().lower()
        if name not in STRATEGIES:
            known = ", ".join(sorted(STRATEGIES))
            raise ValueError(f"Unknown correction strategy {strategy!r}; expected one of: {known}")
        self.strategy = name
        self._formula = STRATEGIES[name]

    def correct(self, pm25_raw: float, humidity: float) -> float:
        corrected = self._formula(pm25_raw, humidity)
        logger.debug(
            "Corrected PM2.5 %.2f -> %.2f",
            pm25_raw,
            corrected,
            extra={"strategy": self.strategy},
        )
        return corrected
