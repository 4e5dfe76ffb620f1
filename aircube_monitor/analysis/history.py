from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Deque, Iterable, List, Optional

import numpy as np
import pandas as pd

from aircube_monitor.models.readings import METRIC_KEYS, HistoricalDataPoint, MetricKey


# Relative deviation of a sampling interval from the median interval above which
# the series is reported as non-uniformly sampled.
UNIFORM_INTERVAL_REL_TOL = 0.10


@dataclass(frozen=True)
class MetricSeries:
    """Dense values of one metric extracted from the rolling history.

    Notes
    -----
    - ``values`` contains only finite numbers, ordered as in the history.
    - ``timestamps[i]`` is the acquisition time of ``values[i]``.
    - Spectral analysis treats ``values`` as uniformly sampled. Irregular spacing
      is reported in ``warnings`` but never resampled.
    """

    key: MetricKey
    values: np.ndarray  # (n,)
    timestamps: np.ndarray  # (n,)
    n_dropped: int = 0
    warnings: tuple[str, ...] = ()

    @property
    def n_samples(self) -> int:
        return int(self.values.size)

    @property
    def median_interval_s(self) -> float:
        if self.timestamps.size < 2:
            return float("nan")
        return float(np.median(np.diff(self.timestamps)))


def _interval_warnings(t: np.ndarray) -> List[str]:
    if t.size < 3:
        return []
    dt = np.diff(t)
    med = float(np.median(dt))
    if not (med > 0.0):
        return [f"non-increasing timestamps (median interval={med:g} s)"]
    rel = np.abs(dt - med) / med
    n_bad = int(np.sum(rel > UNIFORM_INTERVAL_REL_TOL))
    if n_bad:
        return [
            f"non-uniform sampling: {n_bad}/{dt.size} intervals deviate more than "
            f"{UNIFORM_INTERVAL_REL_TOL:.0%} from the median interval {med:g} s "
            "(spectrum assumes uniform spacing)"
        ]
    return []


class HistoryBuffer:
    """
    Fixed-capacity rolling window of timestamped readings.

    Points are kept in arrival order; once full, the oldest point is dropped for
    each new one. The buffer is owned by a single session and is not locked.
    """

    def __init__(self, capacity: int = 60) -> None:
        capacity = int(capacity)
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._points: Deque[HistoricalDataPoint] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return int(self._points.maxlen or 0)

    def __len__(self) -> int:
        return len(self._points)

    def append(self, point: HistoricalDataPoint) -> None:
        self._points.append(point)

    def extend(self, points: Iterable[HistoricalDataPoint]) -> None:
        for p in points:
            self.append(p)

    def clear(self) -> None:
        self._points.clear()

    def points(self) -> List[HistoricalDataPoint]:
        """Snapshot of the retained points, oldest first."""
        return list(self._points)

    def latest(self) -> Optional[HistoricalDataPoint]:
        return self._points[-1] if self._points else None

    def resized(self, capacity: int) -> HistoryBuffer:
        """New buffer with another capacity, keeping the most recent points."""
        out = HistoryBuffer(capacity)
        out.extend(self._points)
        return out

    def metric_series(self, key: MetricKey | str) -> MetricSeries:
        """Extract one metric, skipping missing and non-finite values."""
        mk = MetricKey.parse(key)
        n = len(self._points)
        raw = np.array(
            [np.nan if p.get(mk) is None else p.get(mk) for p in self._points],
            dtype=float,
        )
        t = np.array([p.timestamp for p in self._points], dtype=float)

        ok = np.isfinite(raw)
        values = raw[ok]
        times = t[ok]
        n_dropped = int(n - values.size)

        warnings: List[str] = []
        if n_dropped:
            warnings.append(f"{mk.value}: dropped {n_dropped}/{n} missing or non-finite values")
        warnings.extend(f"{mk.value}: {w}" for w in _interval_warnings(times))

        return MetricSeries(
            key=mk,
            values=values,
            timestamps=times,
            n_dropped=n_dropped,
            warnings=tuple(warnings),
        )

    # ------------------------------------------------------------------
    # Tabular view
    # ------------------------------------------------------------------

    def to_frame(self) -> pd.DataFrame:
        """DataFrame with ``timestamp`` plus one float column per metric (NaN = missing)."""
        cols = ["timestamp"] + [k.value for k in METRIC_KEYS]
        rows = [p.to_dict() for p in self._points]
        df = pd.DataFrame(rows, columns=cols)
        return df.astype(np.float64)

    @classmethod
    def from_frame(cls, frame: pd.DataFrame, capacity: Optional[int] = None) -> HistoryBuffer:
        if "timestamp" not in frame.columns:
            raise KeyError("frame must contain a 'timestamp' column")
        cap = int(capacity) if capacity is not None else max(1, len(frame))
        buf = cls(cap)
        for rec in frame.to_dict(orient="records"):
            buf.append(HistoricalDataPoint.from_dict(rec))
        return buf
