from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

import ipywidgets as w
from IPython.display import display

from aircube_monitor.analysis.fourier import spectrum_to_frame
from aircube_monitor.analysis.session import MonitorSession
from aircube_monitor.analysis.summary import render_prompt
from aircube_monitor.models.readings import METRIC_KEYS, MetricKey, MetricStatus
from aircube_monitor.models.settings import SettingsStore
from aircube_monitor.models.thresholds import METRIC_CONFIGS, ThresholdBand

from .log_view import HtmlLog, HtmlLogNotifier
from .plots import plot_history, plot_spectrum


# Keep a single active dashboard per kernel to avoid stacked live loops.
_ACTIVE_DASHBOARD: Optional[w.Widget] = None
_ACTIVE_SHUTDOWN: Optional[Callable[[], None]] = None

_STATUS_COLORS: Dict[MetricStatus, str] = {
    "normal": "#2e7d32",
    "warning": "#ef6c00",
    "danger": "#c62828",
    "unknown": "#757575",
}

_STATUS_TEXT: Dict[MetricStatus, str] = {
    "normal": "Normal",
    "warning": "Caution advised",
    "danger": "Critical level",
    "unknown": "No data",
}


@dataclass
class DashboardState:
    busy: bool = False
    closed: bool = False
    last_warnings: Tuple[str, ...] = ()
    live_task: Any = None
    n_ticks: int = 0


def _get_pyplot():
    """Import pyplot lazily so importing the package never selects a backend."""
    import matplotlib.pyplot as plt
    return plt


def _card_html(key: MetricKey, value: Optional[float], status: MetricStatus) -> str:
    cfg = METRIC_CONFIGS[key]
    color = _STATUS_COLORS[status]
    shown = "--" if value is None else f"{value:g}"
    return (
        f"<div style='border:2px solid {color}; border-radius:8px; padding:8px; min-width:150px;'>"
        f"<div style='font-size:12px; color:#666;'>{cfg.label}</div>"
        f"<div style='font-size:24px; font-weight:bold; color:{color};'>{shown} "
        f"<span style='font-size:12px;'>{cfg.unit}</span></div>"
        f"<div style='font-size:11px; color:{color};'>{_STATUS_TEXT[status]}</div>"
        f"</div>"
    )


def _band_placeholder(band: ThresholdBand, name: str) -> str:
    v = getattr(band, name)
    return "" if v is None else f"{v:g}"


def build_dashboard(
    session: Optional[MonitorSession] = None,
    *,
    settings_path: Optional[Path | str] = None,
) -> w.Widget:
    """
    AirCube monitoring dashboard (Jupyter / VSCode notebooks).

    session: MonitorSession to drive. A default session with a simulated feed is
      created when omitted (settings loaded from ``settings_path`` if given).
    settings_path: JSON file used to load and persist settings.
    """
    global _ACTIVE_DASHBOARD, _ACTIVE_SHUTDOWN

    # Stop the previous live loop before closing its widgets; a closed toggle keeps its value.
    try:
        if _ACTIVE_SHUTDOWN is not None:
            _ACTIVE_SHUTDOWN()
    finally:
        _ACTIVE_SHUTDOWN = None
        if _ACTIVE_DASHBOARD is not None:
            try:
                _ACTIVE_DASHBOARD.close()
            except Exception:
                pass
            _ACTIVE_DASHBOARD = None

    store = SettingsStore(settings_path) if settings_path is not None else None
    log = HtmlLog(title="Events", height_px=160)
    log_capture = log.output_proxy()

    if session is None:
        settings = store.load() if store is not None else None
        session = MonitorSession(settings)
    if store is not None:
        log.warnings(store.warnings)
    if session.notifier is None:
        session.notifier = HtmlLogNotifier(log)

    state = DashboardState()
    log.set_theme(session.settings.resolve_theme())

    # Connection bar
    lbl_status = w.HTML()
    btn_connect = w.Button(description="Connect", button_style="primary", layout=w.Layout(width="120px"))
    btn_disconnect = w.Button(description="Disconnect", layout=w.Layout(width="120px"))
    btn_read = w.Button(description="Read now", layout=w.Layout(width="120px"))
    tg_live = w.ToggleButton(value=False, description="Live", layout=w.Layout(width="90px"))

    # Cards
    cards = {k: w.HTML() for k in METRIC_KEYS}

    # Analysis
    dd_metric = w.Dropdown(
        options=[(METRIC_CONFIGS[k].label, k.value) for k in METRIC_KEYS],
        value=MetricKey.co2.value,
        description="Metric",
        layout=w.Layout(width="280px"),
    )
    cb_table = w.Checkbox(value=False, description="Show spectrum table", indent=False)
    out_history = w.Output(layout=w.Layout(border="1px solid #ddd", padding="4px"))
    out_spectrum = w.Output(layout=w.Layout(border="1px solid #ddd", padding="4px"))

    # Settings
    dd_theme = w.Dropdown(options=["light", "dark", "system"], value=session.settings.theme, description="Theme")
    txt_bounds = {
        name: w.Text(description=name, layout=w.Layout(width="220px"))
        for name in ThresholdBand.field_names()
    }
    btn_apply = w.Button(description="Apply thresholds", button_style="info")
    btn_reset_metric = w.Button(description="Reset metric")
    btn_reset_all = w.Button(description="Reset all")

    # Summary
    btn_summary = w.Button(description="Prepare summary")
    out_summary = w.Output(layout=w.Layout(border="1px solid #ddd", padding="4px"))

    def _selected() -> MetricKey:
        return MetricKey.parse(dd_metric.value)

    def _save_settings() -> None:
        if store is None:
            return
        try:
            p = store.save(session.settings)
            log.info(f"Settings saved to {p}")
        except OSError as e:
            log.error(f"ERROR: could not save settings: {e}")

    def _refresh_header() -> None:
        lbl_status.value = f"<b>AirCube</b> &mdash; status: <code>{session.status}</code>"
        connected = session.status == "connected"
        btn_connect.disabled = connected
        btn_disconnect.disabled = not connected
        btn_read.disabled = not connected
        tg_live.disabled = not connected

    def _refresh_cards() -> None:
        statuses = session.statuses()
        for k, card in cards.items():
            value = session.latest.get(k) if session.latest is not None else None
            card.value = _card_html(k, value, statuses[k])

    def _refresh_bounds() -> None:
        key = _selected()
        custom = session.settings.thresholds_for(key)
        band = session.bands()[key]
        for name, txt in txt_bounds.items():
            txt.value = "" if name not in custom else f"{custom[name]:g}"
            txt.placeholder = _band_placeholder(band, name)

    def _refresh_charts() -> None:
        key = _selected()
        cfg = METRIC_CONFIGS[key]
        theme = session.settings.resolve_theme()
        plt = _get_pyplot()

        out_history.clear_output(wait=True)
        with out_history:
            fig, ax = plt.subplots(figsize=(9, 3))
            plot_history(ax, session.history.to_frame(), key, cfg, theme=theme)
            fig.tight_layout()
            display(fig)
            plt.close(fig)

        series = session.metric_series(key)
        bins = session.spectrum(key)
        out_spectrum.clear_output(wait=True)
        with out_spectrum:
            fig, ax = plt.subplots(figsize=(9, 3))
            plot_spectrum(ax, bins, cfg, theme=theme)
            fig.tight_layout()
            display(fig)
            plt.close(fig)
            if cb_table.value and bins:
                display(spectrum_to_frame(bins))
        if series.warnings != state.last_warnings:
            state.last_warnings = series.warnings
            with log_capture:
                for msg in series.warnings:
                    print("CHECK:", msg)

    def _refresh_all() -> None:
        _refresh_header()
        _refresh_cards()
        _refresh_bounds()
        _refresh_charts()

    def _tick() -> None:
        if state.busy:
            return
        state.busy = True
        try:
            session.tick()
            state.n_ticks += 1
            _refresh_cards()
            _refresh_charts()
        except Exception as e:
            log.error(f"ERROR: {type(e).__name__}: {e}")
        finally:
            state.busy = False

    async def _live_loop() -> None:
        while not state.closed and tg_live.value and session.status == "connected":
            _tick()
            await asyncio.sleep(float(session.settings.update_interval_s))

    def _stop_live() -> None:
        if state.live_task is not None:
            state.live_task.cancel()
            state.live_task = None
        if tg_live.value:
            tg_live.value = False

    def _shutdown() -> None:
        state.closed = True
        _stop_live()

    def _on_connect(_):
        log.info("Connecting to AirCube device...")
        status = session.connect()
        if status == "connected":
            log.info("Connected to AirCube.")
            _tick()
        else:
            log.error("ERROR: Connection failed. Could not connect to AirCube device.")
        _refresh_header()
        _refresh_cards()

    def _on_disconnect(_):
        _stop_live()
        session.disconnect()
        log.info("AirCube device has been disconnected.")
        _refresh_header()
        _refresh_cards()

    def _on_read(_):
        _tick()

    def _on_live(change):
        if state.closed or not change["new"]:
            _stop_live()
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            log.warning("WARNING: live mode needs a running event loop (notebook kernel); use 'Read now'.")
            tg_live.value = False
            return
        state.live_task = loop.create_task(_live_loop())
        log.info(f"Live mode: polling every {session.settings.update_interval_s:g} s.")

    def _on_metric(_):
        _refresh_bounds()
        _refresh_charts()

    def _on_theme(change):
        session.update_settings(session.settings.with_theme(change["new"]))
        log.set_theme(session.settings.resolve_theme())
        _save_settings()
        _refresh_charts()

    def _on_apply(_):
        key = _selected()
        settings = session.settings
        try:
            for name, txt in txt_bounds.items():
                settings = settings.with_threshold(key, name, txt.value)
        except ValueError as e:
            log.error(f"ERROR: invalid threshold for {METRIC_CONFIGS[key].label}: {e}")
            return
        session.update_settings(settings)
        log.info(f"Thresholds updated for {METRIC_CONFIGS[key].label}.")
        _save_settings()
        _refresh_all()

    def _on_reset_metric(_):
        key = _selected()
        session.update_settings(session.settings.reset_thresholds(key))
        log.info(f"Thresholds reset for {METRIC_CONFIGS[key].label}.")
        _save_settings()
        _refresh_all()

    def _on_reset_all(_):
        session.update_settings(session.settings.reset_thresholds())
        log.info("All thresholds reset to defaults.")
        _save_settings()
        _refresh_all()

    def _on_summary(_):
        out_summary.clear_output(wait=True)
        with out_summary:
            reason, request = session.prepare_summary()
            if reason is not None:
                print(reason)
                return
            print(render_prompt(request))

    btn_connect.on_click(_on_connect)
    btn_disconnect.on_click(_on_disconnect)
    btn_read.on_click(_on_read)
    tg_live.observe(_on_live, names="value")
    dd_metric.observe(_on_metric, names="value")
    cb_table.observe(lambda _: _refresh_charts(), names="value")
    dd_theme.observe(_on_theme, names="value")
    btn_apply.on_click(_on_apply)
    btn_reset_metric.on_click(_on_reset_metric)
    btn_reset_all.on_click(_on_reset_all)
    btn_summary.on_click(_on_summary)

    _refresh_all()

    header = w.HBox([lbl_status, btn_connect, btn_disconnect, btn_read, tg_live])
    cards_row = w.HBox(list(cards.values()), layout=w.Layout(flex_flow="row wrap"))
    analysis = w.VBox([w.HBox([dd_metric, cb_table]), out_history, out_spectrum])
    bounds = list(txt_bounds.values())
    settings_box = w.VBox(
        [
            dd_theme,
            w.HBox(bounds[:4]),
            w.HBox(bounds[4:]),
            w.HBox([btn_apply, btn_reset_metric, btn_reset_all]),
        ]
    )
    extras = w.Accordion(children=[settings_box, w.VBox([btn_summary, out_summary])])
    extras.set_title(0, "Settings")
    extras.set_title(1, "Summary")

    gui = w.VBox([header, cards_row, analysis, extras, log.panel])
    _ACTIVE_DASHBOARD = gui
    _ACTIVE_SHUTDOWN = _shutdown
    return gui
