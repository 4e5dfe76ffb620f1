"""Headless smoke tests for the dashboard widgets, log view and chart helpers.

These tests run without a display and verify that:
1. The dashboard builds and its buttons are wired
2. Clicking through connect / read / threshold edits updates cards and log
3. Chart helpers draw the expected artists on an Agg figure
"""

from __future__ import annotations

import asyncio

import matplotlib

matplotlib.use("Agg")

import ipywidgets as w
import pytest
from matplotlib.figure import Figure

from aircube_monitor.analysis.fourier import compute_spectrum
from aircube_monitor.analysis.history import HistoryBuffer
from aircube_monitor.analysis.session import MonitorSession
import aircube_monitor.gui.dashboard as dashboard_module
from aircube_monitor.gui.dashboard import build_dashboard
from aircube_monitor.gui.log_view import HtmlLog, HtmlLogNotifier
from aircube_monitor.gui.plots import history_limits, plot_history, plot_spectrum, spectrum_limits
from aircube_monitor.analysis.alerts import AlertEvent
from aircube_monitor.ingest.feed import SimulatedFeed
from aircube_monitor.models.readings import AirQualityReading, HistoricalDataPoint, MetricKey
from aircube_monitor.models.settings import DashboardSettings, SettingsStore
from aircube_monitor.models.thresholds import METRIC_CONFIGS


def _find(widget, cls, description=None):
    if isinstance(widget, cls) and (description is None or getattr(widget, "description", None) == description):
        return widget
    if hasattr(widget, "children"):
        for child in widget.children:
            result = _find(child, cls, description)
            if result is not None:
                return result
    return None


def _session() -> MonitorSession:
    return MonitorSession(feed=SimulatedFeed(seed=1, connect_success_rate=1.0, start_time=0.0), month=7)


# -----------------------------------------------------------------------
# Dashboard
# -----------------------------------------------------------------------


def test_dashboard_builds_with_outputs_and_wired_buttons():
    gui = build_dashboard(_session())
    assert isinstance(gui, w.VBox)
    assert _find(gui, w.Output) is not None
    for name in ("Connect", "Disconnect", "Read now", "Apply thresholds", "Reset all", "Prepare summary"):
        btn = _find(gui, w.Button, name)
        assert btn is not None, f"{name} button not found"
        assert len(btn._click_handlers.callbacks) > 0, f"No click handlers registered on {name}"


def test_connect_and_read_update_cards_and_log():
    session = _session()
    gui = build_dashboard(session)

    _find(gui, w.Button, "Connect").click()
    assert session.status == "connected"
    assert len(session.history) == 1

    _find(gui, w.Button, "Read now").click()
    assert len(session.history) == 2

    cards = [c for c in gui.children[1].children if isinstance(c, w.HTML)]
    assert len(cards) == 5
    assert "CO₂ Levels" in cards[0].value

    log_html = gui.children[-1].children[1].value
    assert "Connected to AirCube." in log_html

    _find(gui, w.Button, "Disconnect").click()
    assert session.status == "disconnected"


def test_apply_invalid_threshold_logs_error():
    session = _session()
    gui = build_dashboard(session)
    txt = _find(gui, w.Text, "danger_high")
    txt.value = "not-a-number"
    _find(gui, w.Button, "Apply thresholds").click()
    assert session.settings.custom_thresholds == {}
    assert "invalid threshold" in gui.children[-1].children[1].value


def test_apply_threshold_persists_settings(tmp_path):
    path = tmp_path / "settings.json"
    session = _session()
    gui = build_dashboard(session, settings_path=path)
    _find(gui, w.Text, "danger_high").value = "1500"
    _find(gui, w.Button, "Apply thresholds").click()

    assert session.settings.thresholds_for("co2") == {"danger_high": 1500.0}
    assert SettingsStore(path).load().thresholds_for("co2") == {"danger_high": 1500.0}


def test_series_warnings_are_routed_to_event_log():
    session = _session()
    gui = build_dashboard(session)
    _find(gui, w.Button, "Connect").click()
    session.history.append(HistoricalDataPoint(timestamp=3.0, reading=AirQualityReading(humidity=50.0)))
    _find(gui, w.Button, "Read now").click()

    log_html = gui.children[-1].children[1].value
    assert "CHECK: co2: dropped 1/3 missing or non-finite values" in log_html


def test_rebuild_stops_previous_live_loop():
    async def scenario():
        old = MonitorSession(
            DashboardSettings(update_interval_s=0.01),
            SimulatedFeed(seed=1, connect_success_rate=1.0, start_time=0.0),
            month=7,
        )
        gui = build_dashboard(old)
        _find(gui, w.Button, "Connect").click()
        live = _find(gui, w.ToggleButton, "Live")
        live.value = True
        await asyncio.sleep(0.05)
        assert len(old.history) > 1

        build_dashboard(_session())
        n_at_rebuild = len(old.history)
        await asyncio.sleep(0.1)
        return n_at_rebuild, len(old.history), live.value

    n_at_rebuild, n_after, live_value = asyncio.run(scenario())
    assert n_after == n_at_rebuild
    assert live_value is False


def test_rebuild_shuts_down_previous_even_if_close_fails(monkeypatch):
    calls = []

    class _BrokenWidget:
        def close(self):
            raise RuntimeError("comm closed")

    monkeypatch.setattr(dashboard_module, "_ACTIVE_DASHBOARD", _BrokenWidget())
    monkeypatch.setattr(dashboard_module, "_ACTIVE_SHUTDOWN", lambda: calls.append("stop"))

    gui = build_dashboard(_session())
    assert calls == ["stop"]
    assert dashboard_module._ACTIVE_DASHBOARD is gui


# -----------------------------------------------------------------------
# Log view
# -----------------------------------------------------------------------


def test_html_log_coalesces_and_bounds():
    log = HtmlLog(max_entries=3)
    log.info("a")
    log.info("a")
    log.warning("b")
    log.error("c")
    log.info("d")
    assert log.entries == [("warning", "b", 1), ("error", "c", 1), ("info", "d", 1)]

    log.clear()
    log.info("x")
    log.info("x")
    assert log.entries == [("info", "x", 2)]
    assert "(x2)" in log.widget.value


def test_notifier_writes_alert():
    log = HtmlLog()
    ev = AlertEvent(
        metric=MetricKey.co,
        value=60.0,
        status="danger",
        title="Critical Alert: CO Levels",
        message="CO Levels is at 60ppm. Please take action.",
        timestamp=None,
    )
    HtmlLogNotifier(log).notify(ev)
    assert log.entries[0][0] == "alert"
    assert "Critical Alert: CO Levels" in log.widget.value


def test_output_proxy_routes_lines_by_prefix():
    log = HtmlLog()
    with log.output_proxy():
        print("CHECK: co2: dropped 1/3 missing or non-finite values")
        print("ERROR: sensor offline")
        print("Critical Alert: CO Levels")
        print("plain message")
    assert [level for level, _, _ in log.entries] == ["warning", "error", "alert", "info"]


def test_output_proxy_keeps_lines_and_propagates_exceptions():
    log = HtmlLog()
    with pytest.raises(ValueError):
        with log.output_proxy():
            print("WARNING: before failure")
            raise ValueError("boom")
    assert log.entries == [("warning", "WARNING: before failure", 1)]


# -----------------------------------------------------------------------
# Chart helpers
# -----------------------------------------------------------------------


def test_history_limits():
    assert history_limits([]) == (0.0, 100.0)
    assert history_limits([10.0, 20.0]) == (9.0, 21.0)
    assert history_limits([5.0, 5.0]) == (4.0, 6.0)


def test_spectrum_limits():
    assert spectrum_limits([]) == (0.0, 1.0)
    assert spectrum_limits(compute_spectrum([1, 0, -1, 0])) == (0.0, 3.0)


def test_plot_spectrum_draws_one_bar_per_bin():
    fig = Figure()
    ax = fig.add_subplot(111)
    bins = compute_spectrum([1, 0, -1, 0, 1, 0, -1, 0])
    n = plot_spectrum(ax, bins, METRIC_CONFIGS[MetricKey.co2])
    assert n == 5
    assert len(ax.patches) == 5
    assert ax.get_xlabel() == "Frequency Bin (k)"


def test_plot_spectrum_empty_state():
    fig = Figure()
    ax = fig.add_subplot(111)
    assert plot_spectrum(ax, [], METRIC_CONFIGS[MetricKey.co2], theme="dark") == 0
    assert any("Insufficient Data" in t.get_text() for t in ax.texts)


def test_plot_history_line_and_empty_state():
    buf = HistoryBuffer(10)
    for i, v in enumerate([40.0, None, 42.0, 45.0]):
        buf.append(HistoricalDataPoint(timestamp=1_700_000_000.0 + 3 * i, reading=AirQualityReading(humidity=v)))

    fig = Figure()
    ax = fig.add_subplot(111)
    n = plot_history(ax, buf.to_frame(), "humidity", METRIC_CONFIGS[MetricKey.humidity])
    assert n == 3
    assert len(ax.get_lines()) == 1

    fig2 = Figure()
    ax2 = fig2.add_subplot(111)
    assert plot_history(ax2, HistoryBuffer(3).to_frame(), "humidity", METRIC_CONFIGS[MetricKey.humidity]) == 0
    assert any("Not Enough Data" in t.get_text() for t in ax2.texts)
