"""Monitoring session: feed -> history -> status/alerts -> spectrum.

Design principle:
  - The session is driven by explicit calls. A host (notebook timer, button,
    script loop) calls :meth:`MonitorSession.tick` when it wants a new reading
    and :meth:`MonitorSession.spectrum` when it wants an up-to-date spectrum.
  - Settings are an explicit immutable object; swapping them is a method call.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional, Tuple

from aircube_monitor.ingest.feed import ReadingSource, SimulatedFeed
from aircube_monitor.models.readings import (
    METRIC_KEYS,
    AirQualityReading,
    ConnectionStatus,
    HistoricalDataPoint,
    MetricKey,
    MetricStatus,
)
from aircube_monitor.models.settings import DashboardSettings
from aircube_monitor.models.thresholds import ThresholdBand

from .alerts import AlertEvent, Notifier, detect_danger_transitions
from .fourier import FrequencyBin, compute_spectrum
from .history import HistoryBuffer, MetricSeries
from .status import get_metric_status, resolve_thresholds
from .summary import SummaryRequest, build_summary_request, precheck_summary


class MonitorSession:
    def __init__(
        self,
        settings: Optional[DashboardSettings] = None,
        feed: Optional[ReadingSource] = None,
        *,
        notifier: Optional[Notifier] = None,
        month: Optional[int] = None,
    ) -> None:
        self.settings = settings or DashboardSettings()
        self.feed: ReadingSource = feed if feed is not None else SimulatedFeed(interval_s=self.settings.update_interval_s)
        self.notifier = notifier
        self.month = month

        self.history = HistoryBuffer(self.settings.history_capacity)
        self.status: ConnectionStatus = "disconnected"
        self.latest: Optional[AirQualityReading] = None
        self.alerts: List[AlertEvent] = []

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------

    def connect(self) -> ConnectionStatus:
        self.status = "connecting"
        ok = self.feed.connect()
        self.status = "connected" if ok else "error"
        if not ok:
            self.latest = None
        return self.status

    def disconnect(self) -> ConnectionStatus:
        self.feed.disconnect()
        self.status = "disconnected"
        self.latest = None
        return self.status

    # ------------------------------------------------------------------
    # Readings
    # ------------------------------------------------------------------

    def current_month(self) -> int:
        return int(self.month) if self.month is not None else datetime.now().month

    def bands(self) -> Dict[MetricKey, ThresholdBand]:
        month = self.current_month()
        return {k: resolve_thresholds(k, self.settings, month) for k in METRIC_KEYS}

    def tick(self) -> List[AlertEvent]:
        """Pull one reading, record it and return the alerts it raised."""
        if self.status != "connected":
            raise RuntimeError(f"Cannot read from feed while {self.status}; call connect() first.")

        point: HistoricalDataPoint = self.feed.next_reading()
        previous = self.latest
        self.history.append(point)
        self.latest = point.reading

        events = detect_danger_transitions(previous, point.reading, self.bands(), timestamp=point.timestamp)
        for ev in events:
            self.alerts.append(ev)
            if self.notifier is not None:
                self.notifier.notify(ev)
        return events

    def statuses(self) -> Dict[MetricKey, MetricStatus]:
        bands = self.bands()
        return {
            k: get_metric_status(self.latest.get(k) if self.latest is not None else None, bands[k])
            for k in METRIC_KEYS
        }

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    def metric_series(self, key: MetricKey | str) -> MetricSeries:
        return self.history.metric_series(key)

    def spectrum(self, key: MetricKey | str) -> List[FrequencyBin]:
        """Spectrum of the metric's retained history.

        Returns an empty list while fewer than ``settings.min_spectrum_points``
        valid samples are available.
        """
        series = self.history.metric_series(key)
        if series.n_samples < int(self.settings.min_spectrum_points):
            return []
        return compute_spectrum(series.values, method=self.settings.spectrum_method)

    def prepare_summary(
        self, time_period_description: Optional[str] = None
    ) -> Tuple[Optional[str], Optional[SummaryRequest]]:
        """Either a user-facing reason why no summary can be made, or the request."""
        points = self.history.points()
        reason = precheck_summary(points, min_points=self.settings.min_summary_points)
        if reason is not None:
            return reason, None
        return None, build_summary_request(points, self.bands(), time_period_description)

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def update_settings(self, settings: DashboardSettings) -> None:
        if int(settings.history_capacity) != self.history.capacity:
            self.history = self.history.resized(settings.history_capacity)
        self.settings = settings
