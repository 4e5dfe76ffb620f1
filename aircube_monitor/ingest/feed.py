from __future__ import annotations

from dataclasses import dataclass, replace
import time
from typing import Dict, Optional, Protocol

import numpy as np

from aircube_monitor.models.readings import METRIC_KEYS, AirQualityReading, HistoricalDataPoint


class ReadingSource(Protocol):
    """Pull-style access to a device feed.

    The session decides when to call :meth:`next_reading`; a source never
    pushes data on its own.
    """

    def connect(self) -> bool:
        ...

    def next_reading(self) -> HistoricalDataPoint:
        ...

    def disconnect(self) -> None:
        ...


INITIAL_READING = AirQualityReading(co2=450.0, co=5.0, combustible=0.0, temp=22.0, humidity=50.0)


@dataclass(frozen=True)
class _Walk:
    """Integer step half-width and clamp range for one metric."""

    step: int
    lo: float
    hi: float


_WALKS: Dict[str, _Walk] = {
    "co2": _Walk(step=200, lo=300.0, hi=3000.0),
    "co": _Walk(step=5, lo=0.0, hi=100.0),
    "combustible": _Walk(step=20, lo=0.0, hi=1000.0),
    "humidity": _Walk(step=10, lo=10.0, hi=90.0),
}

# Temperature drifts by a uniform step in [-2, 2) degC, rounded to 0.1 and unclamped.
_TEMP_STEP = 2.0


class SimulatedFeed:
    """
    Random-walk stand-in for an AirCube device.

    Behaviour
    - ``connect()`` succeeds with probability ``connect_success_rate``.
    - The first reading after a connect is :data:`INITIAL_READING`; each later
      reading is a bounded random step from the previous one.
    - With ``dropout_rate > 0`` individual metric values are reported as None
      (the walk itself continues underneath).
    - Timestamps advance by exactly ``interval_s`` per reading.

    All randomness comes from one seeded ``numpy.random.Generator`` so a run is
    reproducible from its seed.
    """

    def __init__(
        self,
        *,
        seed: Optional[int] = None,
        start_time: Optional[float] = None,
        interval_s: float = 3.0,
        connect_success_rate: float = 0.8,
        dropout_rate: float = 0.0,
    ) -> None:
        if not (float(interval_s) > 0.0):
            raise ValueError(f"interval_s must be > 0, got {interval_s}")
        for name, rate in (("connect_success_rate", connect_success_rate), ("dropout_rate", dropout_rate)):
            if not (0.0 <= float(rate) <= 1.0):
                raise ValueError(f"{name} must be in [0, 1], got {rate}")

        self._rng = np.random.default_rng(seed)
        self._interval_s = float(interval_s)
        self._t_next = float(time.time() if start_time is None else start_time)
        self._connect_success_rate = float(connect_success_rate)
        self._dropout_rate = float(dropout_rate)

        self._connected = False
        self._state: Optional[AirQualityReading] = None

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def interval_s(self) -> float:
        return self._interval_s

    def connect(self) -> bool:
        self._connected = bool(self._rng.random() < self._connect_success_rate)
        self._state = None
        return self._connected

    def disconnect(self) -> None:
        self._connected = False
        self._state = None

    def next_reading(self) -> HistoricalDataPoint:
        if not self._connected:
            raise RuntimeError("SimulatedFeed is not connected; call connect() first.")

        self._state = INITIAL_READING if self._state is None else self._step(self._state)

        reported = self._state
        if self._dropout_rate > 0.0:
            drop = self._rng.random(len(METRIC_KEYS)) < self._dropout_rate
            reported = replace(reported, **{k.value: None for k, d in zip(METRIC_KEYS, drop) if d})

        point = HistoricalDataPoint(timestamp=self._t_next, reading=reported)
        self._t_next += self._interval_s
        return point

    def _step(self, prev: AirQualityReading) -> AirQualityReading:
        vals: Dict[str, float] = {}
        for name, walk in _WALKS.items():
            delta = int(self._rng.integers(-walk.step, walk.step + 1))
            vals[name] = float(min(walk.hi, max(walk.lo, prev.get(name) + delta)))
        dt = float(self._rng.uniform(-_TEMP_STEP, _TEMP_STEP))
        vals["temp"] = round(prev.temp + dt, 1)
        return AirQualityReading(**vals)
