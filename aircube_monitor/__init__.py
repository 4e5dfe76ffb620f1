"""AirCube Monitor -- Python tooling for a home air-quality monitoring dashboard.

This package provides tools for:
- Receiving air-quality snapshots (CO2, CO, combustible gas, temperature, humidity)
- Keeping a bounded rolling history of timestamped readings
- Classifying readings against configurable threshold bands
- Detecting transitions into the danger band and raising alerts
- Computing the one-sided DFT spectrum of a metric's recent history
- Rendering live cards, history charts and spectra in a notebook dashboard

Key principles:
- The spectrum is defined on the sample index, not on wall-clock time
- Missing readings are filtered before analysis, never interpolated
- Configuration is an explicit object passed to whatever consumes it

Main subpackages:
- analysis: Spectrum, rolling history, status bands, alerts, session orchestration
- gui: Interactive ipywidgets dashboard and HTML log view
- ingest: Simulated sensor feed and history CSV I/O
- models: Data models (readings, threshold bands, dashboard settings)
"""

__all__ = []
