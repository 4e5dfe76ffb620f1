"""Input side of the natural-language history summary.

The summary itself is produced by an external language model. This module
prepares what such a summarizer receives:

- a human-readable description of every metric's active thresholds,
- the historical readings as plain dicts,
- a short description of the covered period,

and applies the data-sufficiency policy before any request is made.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence

from aircube_monitor.models.readings import METRIC_KEYS, HistoricalDataPoint, MetricKey
from aircube_monitor.models.thresholds import METRIC_CONFIGS, MetricConfig, ThresholdBand

from .alerts import format_value


NO_DATA_MESSAGE = "Not enough historical data available to generate a summary."
INSUFFICIENT_DATA_MESSAGE = "Insufficient historical data for a detailed summary. More readings are needed."


@dataclass(frozen=True)
class SummaryRequest:
    readings: List[Dict[str, Optional[float]]]
    time_period_description: str
    metrics_configuration: Dict[str, str] = field(default_factory=dict)


class Summarizer(Protocol):
    def summarize(self, request: SummaryRequest) -> str:
        ...


def _span(lo: Optional[float], hi: Optional[float]) -> Optional[str]:
    if lo is not None and hi is not None:
        return f"{format_value(lo)}-{format_value(hi)}"
    if lo is not None:
        return f">= {format_value(lo)}"
    if hi is not None:
        return f"<= {format_value(hi)}"
    return None


def describe_band(config: MetricConfig, band: ThresholdBand) -> str:
    head = f"{config.label} ({config.unit})"
    if band.is_empty:
        return f"{head}: no thresholds configured"

    parts: List[str] = []
    if band.is_upper_bound:
        parts.append(f"normal < {format_value(band.normal_high)}")
        if band.danger_high is not None:
            parts.append(f"warning {format_value(band.normal_high)}-{format_value(band.danger_high)}")
            parts.append(f"danger >= {format_value(band.danger_high)}")
        else:
            parts.append(f"warning >= {format_value(band.normal_high)}")
        return f"{head}: " + ", ".join(parts)

    ideal = _span(band.ideal_low, band.ideal_high)
    warning = _span(band.warning_low, band.warning_high)
    danger = _span(band.danger_low, band.danger_high)
    if ideal:
        parts.append(f"ideal {ideal}")
    if warning:
        parts.append(f"warning outside {warning}")
    if danger:
        parts.append(f"danger outside {danger}")
    return f"{head}: " + ", ".join(parts)


def precheck_summary(points: Sequence[HistoricalDataPoint], *, min_points: int = 5) -> Optional[str]:
    """Return a user-facing message when the history is too thin, else None."""
    if not points:
        return NO_DATA_MESSAGE
    n_valid = sum(1 for p in points if p.reading.has_any_value())
    if n_valid < int(min_points):
        return INSUFFICIENT_DATA_MESSAGE
    return None


def build_summary_request(
    points: Sequence[HistoricalDataPoint],
    bands: Mapping[MetricKey, ThresholdBand],
    time_period_description: Optional[str] = None,
) -> SummaryRequest:
    if time_period_description is None:
        time_period_description = f"the past {len(points)} readings"
    metrics: Dict[str, str] = {}
    for key in METRIC_KEYS:
        band = bands.get(key, METRIC_CONFIGS[key].thresholds)
        metrics[key.value] = describe_band(METRIC_CONFIGS[key], band)
    return SummaryRequest(
        readings=[p.to_dict() for p in points],
        time_period_description=str(time_period_description),
        metrics_configuration=metrics,
    )


def _fmt(v: Any) -> str:
    return "n/a" if v is None else format_value(v)


def _fmt_time(v: Any) -> str:
    return "n/a" if v is None else f"{float(v):.0f}"


def render_prompt(request: SummaryRequest) -> str:
    lines = [
        "You are an air quality analyst for a home environment.",
        "Summarize the readings below in 2-4 plain sentences.",
        f"The data covers {request.time_period_description}.",
        "",
        "Current metric thresholds:",
    ]
    for key, desc in request.metrics_configuration.items():
        lines.append(f"- {key}: {desc}")

    lines += ["", "Historical data:"]
    if request.readings:
        for r in request.readings:
            lines.append(
                f"- Timestamp: {_fmt_time(r.get('timestamp'))}, CO2: {_fmt(r.get('co2'))}ppm, "
                f"CO: {_fmt(r.get('co'))}ppm, Combustible: {_fmt(r.get('combustible'))}ppm, "
                f"Temp: {_fmt(r.get('temp'))}°C, Humidity: {_fmt(r.get('humidity'))}%"
            )
    else:
        lines.append("No historical data provided.")

    lines += [
        "",
        "1. Briefly describe the overall air quality.",
        "2. Highlight significant trends or fluctuations for each metric.",
        "3. Mention periods where metrics reached warning or danger levels.",
        "4. If the data is too sparse for a detailed analysis, say so.",
    ]
    return "\n".join(lines)
