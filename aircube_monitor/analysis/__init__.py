"""Analysis package.

Design principle:
  - Ingest produces timestamped :class:`~aircube_monitor.models.readings.HistoricalDataPoint` objects.
  - Analysis consumes them and produces derived quantities (status, alerts, spectra).

Project-wide constraint:
  - The spectrum is expressed on the *sample index* of a metric's history, not on
    any reconstructed time axis. Irregular sampling is reported, never repaired.
"""

from .fourier import FrequencyBin, compute_spectrum, spectrum_to_frame
from .history import HistoryBuffer, MetricSeries
from .session import MonitorSession
from .status import get_metric_status, resolve_thresholds

__all__ = [
    "FrequencyBin",
    "compute_spectrum",
    "spectrum_to_frame",
    "HistoryBuffer",
    "MetricSeries",
    "MonitorSession",
    "get_metric_status",
    "resolve_thresholds",
]
