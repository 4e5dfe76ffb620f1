"""GUI package - interactive ipywidgets dashboard.

The notebook dashboard shows:
1. Connection bar: connect / disconnect, single read, live polling
2. Metric cards colored by status band
3. History chart and frequency spectrum of the selected metric
4. Settings (theme, custom thresholds) and the summary request preview
5. Event log with alerts

Entry point:
    from aircube_monitor.gui.dashboard import build_dashboard
    gui = build_dashboard(settings_path="~/.aircube/settings.json")

Design principles:
- Widgets only call the session; no analysis logic lives in callbacks
- Errors in callbacks are reported in the event log, never raised into the kernel
"""
