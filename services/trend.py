"""Short-term trend from two averaging windows."""

from __future__ import annotations

from models.records import TrendDirection

TREND_THRESHOLD = 5


class TrendAnalyzer:
    """Compares the short (live) window against the long (reference) window.

    A long window more than 5 above the short one means pollution is
    dropping (``falling``); more than 5 below means ``rising``.
    """

    def trend(self, short_window: float, long_window: float) -> TrendDirection:
        delta = long_window - short_window
        if delta > TREND_THRESHOLD:
            return TrendDirection.falling
        if delta < -TREND_THRESHOLD:
            return TrendDirection.rising
        return TrendDirection.steady
