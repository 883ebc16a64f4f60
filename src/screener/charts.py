"""Time-series preparation for funding rate charts.

Turns raw get_funding_chart points into (epoch_ms, apr) pairs plus the x
range the chart should span. Points with a missing APR or an unparseable
timestamp are dropped.
"""

import time
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

from screener.models import ChartPoint

SEVEN_DAYS_MS = 7 * 24 * 60 * 60 * 1000
THIRTY_DAYS_MS = 30 * 24 * 60 * 60 * 1000


@dataclass
class ChartSeries:
    """Chart-ready series sorted by time."""

    points: list[tuple[int, Decimal]]
    min_x: int
    max_x: int

    @property
    def full_range(self) -> int:
        return max(1, self.max_x - self.min_x)

    @property
    def min_zoom_range(self) -> int:
        """Smallest x span the user may zoom to: 7 days, or the whole series if shorter."""
        return min(SEVEN_DAYS_MS, self.full_range)

    def to_dict(self) -> dict:
        return {
            "points": [{"x": x, "y": str(y)} for x, y in self.points],
            "min_x": self.min_x,
            "max_x": self.max_x,
            "min_zoom_range": self.min_zoom_range,
        }


def parse_timestamp_ms(value: str) -> int | None:
    """Parse an ISO 8601 timestamp to epoch milliseconds (naive = UTC)."""
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp() * 1000)


def build_chart_series(points: list[ChartPoint], now_ms: int | None = None) -> ChartSeries:
    """Build a chart series, defaulting to the last 30 days when empty."""
    series: list[tuple[int, Decimal]] = []
    for point in points:
        if point.apr is None or not point.apr.is_finite():
            continue
        x = parse_timestamp_ms(point.funding_time)
        if x is None:
            continue
        series.append((x, point.apr))

    series.sort(key=lambda p: p[0])

    if series:
        return ChartSeries(points=series, min_x=series[0][0], max_x=series[-1][0])

    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return ChartSeries(points=[], min_x=now_ms - THIRTY_DAYS_MS, max_x=now_ms)
