from __future__ import annotations

import math
from typing import Optional

from aircube_monitor.models.readings import MetricKey, MetricStatus
from aircube_monitor.models.settings import DashboardSettings
from aircube_monitor.models.thresholds import METRIC_CONFIGS, ThresholdBand, seasonal_temperature_band


def _below(value: float, bound: Optional[float]) -> bool:
    return bound is not None and value < bound


def _above(value: float, bound: Optional[float]) -> bool:
    return bound is not None and value > bound


def get_metric_status(value: Optional[float], band: ThresholdBand) -> MetricStatus:
    """Classify a value against a threshold band.

    Upper-bound bands (``normal_high`` set) give normal / warning / danger with
    increasing value. Range bands check danger, then warning, then ideal; values
    in the gap between the ideal and warning bounds are a warning.
    """
    if value is None:
        return "unknown"
    v = float(value)
    if math.isnan(v):
        return "unknown"
    if band.is_empty:
        return "unknown"

    if band.is_upper_bound:
        if v < band.normal_high:
            return "normal"
        if band.danger_high is None or v < band.danger_high:
            return "warning"
        return "danger"

    if _below(v, band.danger_low) or _above(v, band.danger_high):
        return "danger"
    if _below(v, band.warning_low) or _above(v, band.warning_high):
        return "warning"
    if not _below(v, band.ideal_low) and not _above(v, band.ideal_high):
        return "normal"
    return "warning"


def resolve_thresholds(key: MetricKey | str, settings: DashboardSettings, month: int) -> ThresholdBand:
    """Effective band for a metric.

    Temperature without any custom bound follows the seasonal band for ``month``.
    Otherwise the custom bounds are merged over the metric's default band (for
    temperature this is the generic default, not the seasonal one).
    """
    mk = MetricKey.parse(key)
    base = METRIC_CONFIGS[mk].thresholds
    custom = settings.thresholds_for(mk)

    if mk is MetricKey.temp and not custom:
        return seasonal_temperature_band(month)
    return base.merged(custom)
