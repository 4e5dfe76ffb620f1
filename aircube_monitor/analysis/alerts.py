from __future__ import annotations

from dataclasses import dataclass
from typing import List, Mapping, Optional, Protocol

from aircube_monitor.models.readings import METRIC_KEYS, AirQualityReading, MetricKey, MetricStatus
from aircube_monitor.models.thresholds import METRIC_CONFIGS, ThresholdBand

from .status import get_metric_status


@dataclass(frozen=True)
class AlertEvent:
    """A metric entering the danger band."""

    metric: MetricKey
    value: float
    status: MetricStatus
    title: str
    message: str
    timestamp: Optional[float] = None


class Notifier(Protocol):
    def notify(self, event: AlertEvent) -> None:
        ...


def format_value(value: float) -> str:
    return f"{float(value):g}"


def detect_danger_transitions(
    previous: Optional[AirQualityReading],
    current: AirQualityReading,
    bands: Mapping[MetricKey, ThresholdBand],
    *,
    timestamp: Optional[float] = None,
) -> List[AlertEvent]:
    """Alerts for metrics whose status becomes ``danger``.

    A metric already in danger in ``previous`` does not alert again. A missing
    previous reading (or value) counts as ``unknown``. Metrics without a band
    in ``bands`` are skipped.
    """
    events: List[AlertEvent] = []
    for key in METRIC_KEYS:
        band = bands.get(key)
        if band is None:
            continue
        value = current.get(key)
        if value is None:
            continue

        now = get_metric_status(value, band)
        before = get_metric_status(previous.get(key) if previous is not None else None, band)
        if now != "danger" or before == "danger":
            continue

        cfg = METRIC_CONFIGS[key]
        events.append(
            AlertEvent(
                metric=key,
                value=float(value),
                status=now,
                title=f"Critical Alert: {cfg.label}",
                message=f"{cfg.label} is at {format_value(value)}{cfg.unit}. Please take action.",
                timestamp=timestamp,
            )
        )
    return events
