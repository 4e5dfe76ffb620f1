"""
Chart rendering for the dashboard.

Design goals:
- Functions draw on a caller-provided Matplotlib ``Axes`` so they work with any
  backend (inline, ipympl, Agg in tests).
- Empty states are drawn as centered text, never as an exception.
- History is plotted against measured timestamps; the spectrum against the bin
  index ``k`` (higher k = faster oscillation).
"""

from __future__ import annotations

import math
from typing import Sequence, Tuple

import numpy as np
import pandas as pd

from aircube_monitor.analysis.fourier import FrequencyBin, dominant_bin
from aircube_monitor.models.readings import MetricKey
from aircube_monitor.models.thresholds import MetricConfig


_THEME_COLORS = {
    "light": {"fg": "#222222", "bg": "#ffffff", "line": "#1f77b4", "bar": "#2a9d8f", "muted": "#888888"},
    "dark": {"fg": "#e6e6e6", "bg": "#1e1e1e", "line": "#64b5f6", "bar": "#4db6ac", "muted": "#9e9e9e"},
}


def history_limits(values: Sequence[float] | np.ndarray) -> Tuple[float, float]:
    """Y-limits for a history chart: data range padded by 10 % (at least 1), rounded outwards."""
    v = np.asarray(values, dtype=float)
    v = v[np.isfinite(v)]
    if v.size == 0:
        return 0.0, 100.0
    lo = float(np.min(v))
    hi = float(np.max(v))
    pad = (hi - lo) * 0.1 or 1.0
    lo = float(math.floor(lo - pad))
    hi = float(math.ceil(hi + pad))
    if lo == hi:
        lo -= 1.0
        hi += 1.0
    return lo, hi


def spectrum_limits(bins: Sequence[FrequencyBin]) -> Tuple[float, float]:
    """Y-limits for a spectrum chart: zero to the peak magnitude padded by 10 % (at least 1)."""
    mags = np.array([b.magnitude for b in bins], dtype=float)
    mags = mags[np.isfinite(mags)]
    if mags.size == 0:
        return 0.0, 1.0
    top = float(np.max(mags))
    pad = top * 0.1 or 1.0
    return 0.0, float(math.ceil(top + pad))


def _style_axes(ax, theme: str) -> dict:
    pal = _THEME_COLORS.get(theme, _THEME_COLORS["light"])
    ax.set_facecolor(pal["bg"])
    ax.figure.set_facecolor(pal["bg"])
    ax.tick_params(colors=pal["fg"])
    for spine in ax.spines.values():
        spine.set_color(pal["muted"])
    ax.title.set_color(pal["fg"])
    ax.xaxis.label.set_color(pal["fg"])
    ax.yaxis.label.set_color(pal["fg"])
    return pal


def _empty_state(ax, title: str, message: str, pal: dict) -> None:
    ax.set_title(title)
    ax.text(0.5, 0.5, message, ha="center", va="center", transform=ax.transAxes, color=pal["muted"], wrap=True)
    ax.set_xticks([])
    ax.set_yticks([])


def plot_history(ax, frame: pd.DataFrame, key: MetricKey | str, config: MetricConfig, *, theme: str = "light") -> int:
    """Line chart of one metric over time. Returns the number of plotted samples."""
    mk = MetricKey.parse(key)
    pal = _style_axes(ax, theme)
    title = f"History: {config.label}"

    if len(frame) < 2 or mk.value not in frame.columns:
        _empty_state(ax, title, "Not Enough Data\nAt least two readings are needed to display a chart.", pal)
        return 0

    y = frame[mk.value].to_numpy(dtype=float)
    t = pd.to_datetime(frame["timestamp"].to_numpy(dtype=float), unit="s")
    ok = np.isfinite(y)

    ax.plot(t[ok], y[ok], color=pal["line"], marker="o", markersize=3, linewidth=1.5)
    ax.set_ylim(*history_limits(y))
    ax.set_title(f"{title} (last {len(frame)} readings)")
    ax.set_ylabel(f"{config.label} [{config.unit}]")
    ax.grid(True, linestyle="--", alpha=0.3)
    ax.figure.autofmt_xdate()
    return int(np.sum(ok))


def plot_spectrum(ax, bins: Sequence[FrequencyBin], config: MetricConfig, *, theme: str = "light") -> int:
    """Bar chart of magnitude vs frequency bin. Returns the number of bars."""
    pal = _style_axes(ax, theme)
    title = f"Frequency Spectrum: {config.label}"

    if not bins:
        _empty_state(
            ax,
            title,
            "Insufficient Data for Spectrum\nMore historical readings are needed for frequency analysis.",
            pal,
        )
        return 0

    k = np.array([b.frequency_index for b in bins], dtype=int)
    mag = np.array([b.magnitude for b in bins], dtype=float)
    ax.bar(k, mag, color=pal["bar"], width=0.8)
    ax.set_ylim(*spectrum_limits(bins))
    ax.set_xlabel("Frequency Bin (k)")
    ax.set_ylabel("Magnitude")
    ax.set_title(title)
    ax.grid(True, axis="y", linestyle="--", alpha=0.3)

    peak = dominant_bin(bins)
    if peak is not None and peak.magnitude > 0.0:
        ax.annotate(
            f"k={peak.frequency_index}\n|X|={peak.magnitude:.2f}\nphase={peak.phase:.2f} rad",
            xy=(peak.frequency_index, peak.magnitude),
            xytext=(0, 8),
            textcoords="offset points",
            ha="center",
            fontsize=8,
            color=pal["fg"],
        )
    return int(k.size)
