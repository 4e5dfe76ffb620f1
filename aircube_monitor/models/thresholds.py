"""Threshold bands and per-metric display configuration.

Two band shapes are in use:

- Upper-bound bands (CO2, CO): ``normal_high`` and ``danger_high``.
  Values below ``normal_high`` are normal, values below ``danger_high`` are a
  warning, anything above is dangerous.
- Range bands (temperature, humidity): nested ``ideal``, ``warning`` and
  ``danger`` intervals.

Any bound may be missing; classification treats a missing bound as unbounded.
Temperature bands depend on the season (Philippine climate), see
:func:`seasonal_temperature_band`.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Dict, Mapping, Optional

from .readings import MetricKey


@dataclass(frozen=True)
class ThresholdBand:
    normal_high: Optional[float] = None
    warning_low: Optional[float] = None
    warning_high: Optional[float] = None
    danger_low: Optional[float] = None
    danger_high: Optional[float] = None
    ideal_low: Optional[float] = None
    ideal_high: Optional[float] = None

    @staticmethod
    def field_names() -> tuple[str, ...]:
        return tuple(f.name for f in fields(ThresholdBand))

    @property
    def is_empty(self) -> bool:
        return all(v is None for v in asdict(self).values())

    @property
    def is_upper_bound(self) -> bool:
        return self.normal_high is not None

    def merged(self, overrides: Optional[Mapping[str, Any]]) -> ThresholdBand:
        """Return a copy where every non-None override replaces the base value."""
        if not overrides:
            return self
        clean = {k: float(v) for k, v in _checked(overrides).items() if v is not None}
        return replace(self, **clean)

    def to_dict(self) -> Dict[str, float]:
        """Only the bounds that are set."""
        return {k: v for k, v in asdict(self).items() if v is not None}

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> ThresholdBand:
        return cls(**{k: (None if v is None else float(v)) for k, v in _checked(d).items()})


def _checked(d: Mapping[str, Any]) -> Dict[str, Any]:
    names = ThresholdBand.field_names()
    unknown = [k for k in d if k not in names]
    if unknown:
        raise KeyError(f"Unknown threshold field(s): {unknown}. Expected a subset of {list(names)}")
    return dict(d)


@dataclass(frozen=True)
class MetricConfig:
    label: str
    unit: str
    thresholds: ThresholdBand


METRIC_CONFIGS: Dict[MetricKey, MetricConfig] = {
    MetricKey.co2: MetricConfig(
        label="CO₂ Levels",
        unit="ppm",
        thresholds=ThresholdBand(normal_high=1000.0, danger_high=2000.0),
    ),
    MetricKey.co: MetricConfig(
        label="CO Levels",
        unit="ppm",
        thresholds=ThresholdBand(normal_high=9.0, danger_high=50.0),
    ),
    MetricKey.combustible: MetricConfig(
        label="Combustible Gas",
        unit="ppm",
        thresholds=ThresholdBand(),
    ),
    # Placeholder: the seasonal band takes precedence unless the user customizes it.
    MetricKey.temp: MetricConfig(
        label="Temperature",
        unit="°C",
        thresholds=ThresholdBand(ideal_low=24.0, ideal_high=31.0),
    ),
    MetricKey.humidity: MetricConfig(
        label="Humidity",
        unit="%",
        thresholds=ThresholdBand(
            ideal_low=45.0,
            ideal_high=65.0,
            warning_low=35.0,
            warning_high=75.0,
            danger_low=30.0,
            danger_high=80.0,
        ),
    ),
}


_COOL_DRY = ThresholdBand(ideal_low=24.0, ideal_high=31.0, warning_low=21.0, warning_high=34.0, danger_low=20.0, danger_high=35.0)
_HOT_DRY = ThresholdBand(ideal_low=28.0, ideal_high=38.0, warning_low=25.0, warning_high=41.0, danger_low=24.0, danger_high=42.0)
_RAINY = ThresholdBand(ideal_low=27.0, ideal_high=34.0, warning_low=24.0, warning_high=37.0, danger_low=23.0, danger_high=38.0)


def seasonal_temperature_band(month: int) -> ThresholdBand:
    """Temperature band for a calendar month (1 = January).

    Dec-Feb: cool dry season; Mar-May: hot dry season; Jun-Nov: rainy season.
    """
    m = int(month)
    if not (1 <= m <= 12):
        raise ValueError(f"month must be in [1, 12], got {month}")
    if m in (12, 1, 2):
        return _COOL_DRY
    if 3 <= m <= 5:
        return _HOT_DRY
    return _RAINY


def metric_config(key: MetricKey | str) -> MetricConfig:
    return METRIC_CONFIGS[MetricKey.parse(key)]
