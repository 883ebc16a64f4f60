"""Tests for chart series preparation."""

from decimal import Decimal

from screener.charts import (
    SEVEN_DAYS_MS,
    THIRTY_DAYS_MS,
    build_chart_series,
    parse_timestamp_ms,
)
from screener.models import ChartPoint

DAY_MS = 24 * 60 * 60 * 1000


class TestParseTimestamp:
    def test_zulu_suffix(self) -> None:
        assert parse_timestamp_ms("1970-01-01T00:00:01Z") == 1000

    def test_offset(self) -> None:
        assert parse_timestamp_ms("1970-01-01T01:00:00+01:00") == 0

    def test_naive_is_utc(self) -> None:
        assert parse_timestamp_ms("1970-01-02T00:00:00") == DAY_MS

    def test_invalid(self) -> None:
        assert parse_timestamp_ms("yesterday") is None
        assert parse_timestamp_ms(None) is None  # type: ignore[arg-type]


class TestBuildChartSeries:
    def test_sorted_by_time(self) -> None:
        points = [
            ChartPoint(funding_time="2024-01-03T00:00:00Z", apr=Decimal("3")),
            ChartPoint(funding_time="2024-01-01T00:00:00Z", apr=Decimal("1")),
            ChartPoint(funding_time="2024-01-02T00:00:00Z", apr=Decimal("2")),
        ]
        series = build_chart_series(points)
        assert [y for _, y in series.points] == [Decimal("1"), Decimal("2"), Decimal("3")]
        assert series.min_x == parse_timestamp_ms("2024-01-01T00:00:00Z")
        assert series.max_x == parse_timestamp_ms("2024-01-03T00:00:00Z")

    def test_drops_missing_and_non_finite(self) -> None:
        points = [
            ChartPoint(funding_time="2024-01-01T00:00:00Z", apr=None),
            ChartPoint(funding_time="2024-01-02T00:00:00Z", apr=Decimal("NaN")),
            ChartPoint(funding_time="bad", apr=Decimal("1")),
            ChartPoint(funding_time="2024-01-03T00:00:00Z", apr=Decimal("4")),
        ]
        series = build_chart_series(points)
        assert len(series.points) == 1
        assert series.points[0][1] == Decimal("4")

    def test_empty_defaults_to_last_thirty_days(self) -> None:
        now_ms = 100 * DAY_MS
        series = build_chart_series([], now_ms=now_ms)
        assert series.points == []
        assert series.max_x == now_ms
        assert series.min_x == now_ms - THIRTY_DAYS_MS

    def test_min_zoom_range_is_seven_days(self) -> None:
        points = [
            ChartPoint(funding_time="2024-01-01T00:00:00Z", apr=Decimal("1")),
            ChartPoint(funding_time="2024-01-31T00:00:00Z", apr=Decimal("2")),
        ]
        series = build_chart_series(points)
        assert series.full_range == 30 * DAY_MS
        assert series.min_zoom_range == SEVEN_DAYS_MS

    def test_min_zoom_range_short_series(self) -> None:
        points = [
            ChartPoint(funding_time="2024-01-01T00:00:00Z", apr=Decimal("1")),
            ChartPoint(funding_time="2024-01-02T00:00:00Z", apr=Decimal("2")),
        ]
        series = build_chart_series(points)
        assert series.min_zoom_range == DAY_MS

    def test_to_dict(self) -> None:
        points = [ChartPoint(funding_time="1970-01-01T00:00:01Z", apr=Decimal("12.5"))]
        data = build_chart_series(points).to_dict()
        assert data["points"] == [{"x": 1000, "y": "12.5"}]
        assert data["min_x"] == 1000
        assert data["max_x"] == 1000
        assert data["min_zoom_range"] == 1
