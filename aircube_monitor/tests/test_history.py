from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from aircube_monitor.analysis.history import HistoryBuffer
from aircube_monitor.models.readings import AirQualityReading, HistoricalDataPoint, MetricKey


def _point(t: float, **values) -> HistoricalDataPoint:
    return HistoricalDataPoint(timestamp=t, reading=AirQualityReading(**values))


def _filled(n: int, capacity: int = 60, dt: float = 3.0) -> HistoryBuffer:
    buf = HistoryBuffer(capacity)
    for i in range(n):
        buf.append(_point(1000.0 + i * dt, co2=400.0 + i, temp=22.0))
    return buf


def test_capacity_must_be_positive() -> None:
    with pytest.raises(ValueError):
        HistoryBuffer(0)


def test_rolling_window_drops_oldest() -> None:
    buf = _filled(10, capacity=4)
    assert len(buf) == 4
    pts = buf.points()
    assert [p.get("co2") for p in pts] == [406.0, 407.0, 408.0, 409.0]
    assert buf.latest().get(MetricKey.co2) == 409.0


def test_metric_series_filters_missing_and_nan() -> None:
    buf = HistoryBuffer(10)
    buf.append(_point(0.0, co2=400.0))
    buf.append(_point(3.0, co2=None))
    buf.append(_point(6.0, co2=float("inf")))
    buf.append(_point(9.0, co2=420.0))

    s = buf.metric_series("co2")
    np.testing.assert_array_equal(s.values, [400.0, 420.0])
    np.testing.assert_array_equal(s.timestamps, [0.0, 9.0])
    assert s.n_dropped == 2
    assert any("dropped 2/4" in w for w in s.warnings)


def test_metric_series_uniform_has_no_warnings() -> None:
    s = _filled(8).metric_series(MetricKey.co2)
    assert s.n_samples == 8
    assert s.warnings == ()
    assert s.median_interval_s == pytest.approx(3.0)


def test_metric_series_reports_irregular_sampling() -> None:
    buf = HistoryBuffer(10)
    for t in (0.0, 3.0, 6.0, 9.0, 30.0):
        buf.append(_point(t, humidity=50.0))
    s = buf.metric_series("humidity")
    assert s.n_samples == 5
    assert any("non-uniform sampling" in w for w in s.warnings)


def test_metric_series_empty_and_unknown_key() -> None:
    buf = HistoryBuffer(5)
    s = buf.metric_series("temp")
    assert s.n_samples == 0
    assert np.isnan(s.median_interval_s)
    with pytest.raises(KeyError):
        buf.metric_series("pm25")


def test_resized_keeps_most_recent() -> None:
    buf = _filled(10, capacity=10)
    small = buf.resized(3)
    assert small.capacity == 3
    assert [p.get("co2") for p in small.points()] == [407.0, 408.0, 409.0]
    assert len(buf) == 10


def test_frame_round_trip_keeps_missing_as_nan() -> None:
    buf = HistoryBuffer(5)
    buf.append(_point(0.0, co2=400.0, humidity=55.0))
    buf.append(_point(3.0, co2=410.0))

    df = buf.to_frame()
    assert list(df.columns) == ["timestamp", "co2", "co", "combustible", "temp", "humidity"]
    assert df["co2"].tolist() == [400.0, 410.0]
    assert np.isnan(df.loc[1, "humidity"])

    back = HistoryBuffer.from_frame(df, capacity=5)
    assert back.points() == buf.points()


def test_empty_frame_has_columns() -> None:
    df = HistoryBuffer(3).to_frame()
    assert df.empty
    assert "timestamp" in df.columns


def test_from_frame_requires_timestamp() -> None:
    with pytest.raises(KeyError):
        HistoryBuffer.from_frame(pd.DataFrame({"co2": [1.0]}))


def test_extend_and_latest() -> None:
    buf = HistoryBuffer(3)
    assert buf.latest() is None
    buf.extend(_point(float(t), co=float(t)) for t in range(5))
    assert len(buf) == 3
    assert buf.latest().get("co") == 4.0
