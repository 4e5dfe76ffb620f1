from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Tuple

import numpy as np
import pandas as pd

from aircube_monitor.models.readings import METRIC_KEYS, HistoricalDataPoint


def read_history_csv(file_path: Path | str) -> Tuple[List[HistoricalDataPoint], Tuple[str, ...]]:
    """
    Read an exported reading history.

    Contract:
      - A ``timestamp`` column (UNIX seconds) MUST be present.
      - Metric columns are optional; an absent column becomes None with a warning.
      - Rows without a finite timestamp are dropped with a warning.
      - Rows are returned sorted by timestamp (stable for equal stamps).
      - Timestamps are used as stored; nothing is resampled or filled.
    """
    fp = Path(file_path).expanduser().resolve()
    df = pd.read_csv(fp)
    warnings: List[str] = []

    if "timestamp" not in df.columns:
        raise KeyError(f"Missing required column 'timestamp' in {fp.name}; got {list(df.columns)}")

    missing = [k.value for k in METRIC_KEYS if k.value not in df.columns]
    if missing:
        warnings.append(f"missing metric column(s) {missing}: values set to None")

    extra = [c for c in df.columns if c != "timestamp" and c not in {k.value for k in METRIC_KEYS}]
    if extra:
        warnings.append(f"ignored unknown column(s) {extra}")

    cols = ["timestamp"] + [k.value for k in METRIC_KEYS if k.value in df.columns]
    df = df[cols].apply(pd.to_numeric, errors="coerce")

    ok_t = np.isfinite(df["timestamp"].to_numpy(dtype=float))
    n_bad = int(np.sum(~ok_t))
    if n_bad:
        warnings.append(f"dropped {n_bad} row(s) without a finite timestamp")
        df = df.loc[ok_t]

    t = df["timestamp"].to_numpy(dtype=float)
    if t.size > 1 and np.any(np.diff(t) < 0):
        warnings.append("rows were not in timestamp order: sorted")
        df = df.sort_values("timestamp", kind="mergesort")

    points = [HistoricalDataPoint.from_dict(rec) for rec in df.to_dict(orient="records")]
    return points, tuple(warnings)


def write_history_csv(points: Iterable[HistoricalDataPoint], file_path: Path | str) -> Path:
    fp = Path(file_path).expanduser()
    fp.parent.mkdir(parents=True, exist_ok=True)
    cols = ["timestamp"] + [k.value for k in METRIC_KEYS]
    df = pd.DataFrame([p.to_dict() for p in points], columns=cols)
    df.to_csv(fp, index=False)
    return fp
