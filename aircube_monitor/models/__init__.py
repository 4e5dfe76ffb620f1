from .readings import AirQualityReading, HistoricalDataPoint, MetricKey
from .settings import DashboardSettings, SettingsStore
from .thresholds import METRIC_CONFIGS, MetricConfig, ThresholdBand

__all__ = [
    "AirQualityReading",
    "HistoricalDataPoint",
    "MetricKey",
    "DashboardSettings",
    "SettingsStore",
    "METRIC_CONFIGS",
    "MetricConfig",
    "ThresholdBand",
]
