"""Dashboard settings -- bundles all user-configurable state.

DashboardSettings groups every parameter that affects classification, history
retention and spectrum display into one frozen dataclass. It can be:

- Constructed with defaults and overridden field-by-field via ``dataclasses.replace()``
- Edited through the helpers ``with_threshold`` / ``reset_thresholds`` / ``with_theme``
  which always return a new object
- Serialized to/from a dict and persisted as JSON by :class:`SettingsStore`

Nothing here is module-level state: consumers receive the settings object explicitly.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
import json
import math
from pathlib import Path
from typing import Any, Dict, Literal, Optional, Tuple

from .readings import MetricKey
from .thresholds import ThresholdBand


Theme = Literal["light", "dark", "system"]
_THEMES = ("light", "dark", "system")
_SPECTRUM_METHODS = ("direct", "fft")


@dataclass(frozen=True)
class DashboardSettings:
    """Frozen configuration for the monitoring dashboard.

    Fields
    ------
    theme : str
        "light", "dark" or "system" (follow the host preference).
    custom_thresholds : dict
        ``{metric: {band_field: value}}``. Only user-set bounds are stored; they
        are merged over the defaults when thresholds are resolved.
    history_capacity : int
        Number of most recent readings kept in the rolling history window.
    update_interval_s : float
        Polling period of the live feed.
    min_spectrum_points : int
        Minimum number of valid samples before a spectrum is displayed.
    min_summary_points : int
        Minimum number of readings before a summary is requested.
    spectrum_method : str
        "direct" (O(N^2) summation) or "fft".
    """

    theme: Theme = "light"
    custom_thresholds: Dict[str, Dict[str, float]] = field(default_factory=dict)

    history_capacity: int = 60
    update_interval_s: float = 3.0
    min_spectrum_points: int = 2
    min_summary_points: int = 5
    spectrum_method: str = "direct"

    def __post_init__(self) -> None:
        if self.theme not in _THEMES:
            raise ValueError(f"theme must be one of {_THEMES}, got {self.theme!r}")
        if self.spectrum_method not in _SPECTRUM_METHODS:
            raise ValueError(f"spectrum_method must be one of {_SPECTRUM_METHODS}, got {self.spectrum_method!r}")
        if int(self.history_capacity) < 1:
            raise ValueError(f"history_capacity must be >= 1, got {self.history_capacity}")
        if not (float(self.update_interval_s) > 0.0):
            raise ValueError(f"update_interval_s must be > 0, got {self.update_interval_s}")
        for key, overrides in self.custom_thresholds.items():
            MetricKey.parse(key)
            ThresholdBand.from_dict(overrides)

    # ------------------------------------------------------------------
    # Threshold editing
    # ------------------------------------------------------------------

    def thresholds_for(self, key: MetricKey | str) -> Dict[str, float]:
        """User-set bounds for one metric (possibly empty)."""
        return dict(self.custom_thresholds.get(MetricKey.parse(key).value, {}))

    def with_threshold(self, key: MetricKey | str, name: str, value: Any) -> DashboardSettings:
        """Set or clear one custom bound.

        ``None`` or an empty string removes the bound; a metric left without any
        bound is removed entirely.
        """
        mk = MetricKey.parse(key).value
        if name not in ThresholdBand.field_names():
            raise KeyError(f"Unknown threshold field '{name}'")

        numeric: Optional[float]
        if value is None or (isinstance(value, str) and not value.strip()):
            numeric = None
        else:
            numeric = float(value)
            if math.isnan(numeric):
                numeric = None

        table = {k: dict(v) for k, v in self.custom_thresholds.items()}
        entry = table.get(mk, {})
        if numeric is None:
            entry.pop(name, None)
        else:
            entry[name] = numeric

        if entry:
            table[mk] = entry
        else:
            table.pop(mk, None)
        return replace(self, custom_thresholds=table)

    def reset_thresholds(self, key: Optional[MetricKey | str] = None) -> DashboardSettings:
        if key is None:
            return replace(self, custom_thresholds={})
        mk = MetricKey.parse(key).value
        table = {k: dict(v) for k, v in self.custom_thresholds.items() if k != mk}
        return replace(self, custom_thresholds=table)

    # ------------------------------------------------------------------
    # Theme
    # ------------------------------------------------------------------

    def with_theme(self, theme: Theme) -> DashboardSettings:
        return replace(self, theme=theme)

    def resolve_theme(self, system_prefers_dark: bool = False) -> Literal["light", "dark"]:
        if self.theme == "system":
            return "dark" if system_prefers_dark else "light"
        return self.theme

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> DashboardSettings:
        """Reconstruct from a dict (e.g. loaded from JSON). Unknown keys are rejected."""
        d = dict(d)
        known = set(cls.__dataclass_fields__)
        unknown = sorted(set(d) - known)
        if unknown:
            raise KeyError(f"Unknown settings key(s): {unknown}")
        if "custom_thresholds" in d:
            d["custom_thresholds"] = {
                str(k): {str(f): float(v) for f, v in dict(vals).items() if v is not None}
                for k, vals in dict(d["custom_thresholds"] or {}).items()
            }
        return cls(**d)


class SettingsStore:
    """
    JSON persistence for :class:`DashboardSettings`.

    A missing file means "defaults". A file that cannot be parsed also yields
    defaults; the reason is recorded in ``warnings`` instead of raising, so a
    corrupted settings file never prevents the dashboard from starting.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path).expanduser()
        self._warnings: list[str] = []

    @property
    def warnings(self) -> Tuple[str, ...]:
        return tuple(self._warnings)

    def load(self) -> DashboardSettings:
        self._warnings.clear()
        if not self.path.exists():
            return DashboardSettings()
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
            if not isinstance(payload, dict):
                raise ValueError(f"expected a JSON object, got {type(payload).__name__}")
            return DashboardSettings.from_dict(payload)
        except (OSError, ValueError, KeyError, TypeError) as e:
            self._warnings.append(f"Failed to parse settings from '{self.path}': {type(e).__name__}: {e}")
            return DashboardSettings()

    def save(self, settings: DashboardSettings) -> Path:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(settings.to_dict(), indent=2, sort_keys=True), encoding="utf-8")
        return self.path
