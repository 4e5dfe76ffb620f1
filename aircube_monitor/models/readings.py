from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import math
from typing import Any, Dict, Literal, Mapping, Optional


ConnectionStatus = Literal["disconnected", "connecting", "connected", "error"]
MetricStatus = Literal["normal", "warning", "danger", "unknown"]


class MetricKey(str, Enum):
    """Identifiers of the metrics reported by an AirCube device."""

    co2 = "co2"
    co = "co"
    combustible = "combustible"
    temp = "temp"
    humidity = "humidity"

    @classmethod
    def parse(cls, key: "MetricKey | str") -> "MetricKey":
        """Accept either a MetricKey or its string value."""
        if isinstance(key, MetricKey):
            return key
        try:
            return cls(str(key))
        except ValueError:
            raise KeyError(f"Unknown metric '{key}'. Expected one of {[m.value for m in cls]}") from None


METRIC_KEYS = tuple(MetricKey)


def _as_optional_float(v: Any) -> Optional[float]:
    if v is None:
        return None
    x = float(v)
    if math.isnan(x):
        return None
    return x


@dataclass(frozen=True)
class AirQualityReading:
    """
    One snapshot of all metrics.

    Notes
    - Every metric is optional: a sensor may not report in a given snapshot.
    - NaN is normalized to None on construction via :meth:`from_dict`.
    """
    co2: Optional[float] = None
    co: Optional[float] = None
    combustible: Optional[float] = None
    temp: Optional[float] = None
    humidity: Optional[float] = None

    def get(self, key: MetricKey | str) -> Optional[float]:
        return getattr(self, MetricKey.parse(key).value)

    def values(self) -> Dict[MetricKey, Optional[float]]:
        return {k: self.get(k) for k in METRIC_KEYS}

    def has_any_value(self) -> bool:
        return any(v is not None for v in self.values().values())

    def to_dict(self) -> Dict[str, Optional[float]]:
        return {k.value: self.get(k) for k in METRIC_KEYS}

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> AirQualityReading:
        return cls(**{k.value: _as_optional_float(d.get(k.value)) for k in METRIC_KEYS})


@dataclass(frozen=True)
class HistoricalDataPoint:
    """A reading stamped with its acquisition time (UNIX seconds)."""

    timestamp: float
    reading: AirQualityReading

    def get(self, key: MetricKey | str) -> Optional[float]:
        return self.reading.get(key)

    def to_dict(self) -> Dict[str, Optional[float]]:
        d: Dict[str, Optional[float]] = {"timestamp": float(self.timestamp)}
        d.update(self.reading.to_dict())
        return d

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> HistoricalDataPoint:
        if "timestamp" not in d:
            raise KeyError("HistoricalDataPoint requires a 'timestamp' entry")
        return cls(timestamp=float(d["timestamp"]), reading=AirQualityReading.from_dict(d))
