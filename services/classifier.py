"""AQI value to display category."""

from __future__ import annotations

import math
from numbers import Real
from typing import Iterable, Optional, Sequence

from models.categories import AQI_CATEGORIES, AQICategory

# AQI values are never below zero, so the lowest threshold must sit under it.
_LOWEST_ATTAINABLE_AQI = 0


class LevelClassifier:
    """Finds the first category whose threshold an AQI value exceeds."""

    def __init__(self, categories: Iterable[AQICategory] = AQI_CATEGORIES) -> None:
        table = tuple(categories)
        if not table:
            raise ValueError("Category table is empty.")
        thresholds = [category.threshold for category in table]
        if any(upper <= lower for upper, lower in zip(thresholds, thresholds[1:])):
            raise ValueError("Category thresholds must be strictly descending.")
        if thresholds[-1] >= _LOWEST_ATTAINABLE_AQI:
            raise ValueError("Lowest category threshold must be below zero.")
        self._categories: Sequence[AQICategory] = table

    @property
    def categories(self) -> Sequence[AQICategory]:
        return self._categories

    def classify(self, aqi: Optional[float]) -> AQICategory:
        level = _as_level(aqi)
        for category in self._categories:
            if level > category.threshold:
                return category
        return self._categories[-1]


def _as_level(aqi: Optional[float]) -> float:
    if isinstance(aqi, bool) or not isinstance(aqi, Real):
        return 0
    if math.isnan(aqi):
        return 0
    return aqi
