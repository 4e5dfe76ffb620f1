"""Tests for DashboardSettings and SettingsStore."""

from __future__ import annotations

import dataclasses
import json

import pytest

from aircube_monitor.models.settings import DashboardSettings, SettingsStore


# -----------------------------------------------------------------------
# Basic construction
# -----------------------------------------------------------------------


def test_settings_defaults() -> None:
    s = DashboardSettings()
    assert s.theme == "light"
    assert s.custom_thresholds == {}
    assert s.history_capacity == 60
    assert s.update_interval_s == 3.0
    assert s.min_spectrum_points == 2
    assert s.min_summary_points == 5
    assert s.spectrum_method == "direct"


def test_settings_frozen() -> None:
    s = DashboardSettings()
    with pytest.raises(dataclasses.FrozenInstanceError):
        s.theme = "dark"  # type: ignore[misc]


@pytest.mark.parametrize(
    "kwargs",
    [
        {"theme": "sepia"},
        {"spectrum_method": "wavelet"},
        {"history_capacity": 0},
        {"update_interval_s": 0.0},
    ],
)
def test_settings_validation(kwargs) -> None:
    with pytest.raises(ValueError):
        DashboardSettings(**kwargs)


def test_settings_reject_unknown_metric_or_field() -> None:
    with pytest.raises(KeyError):
        DashboardSettings(custom_thresholds={"pm25": {"danger_high": 1.0}})
    with pytest.raises(KeyError):
        DashboardSettings(custom_thresholds={"co2": {"critical": 1.0}})


# -----------------------------------------------------------------------
# Threshold editing
# -----------------------------------------------------------------------


def test_with_threshold_sets_and_clears() -> None:
    s0 = DashboardSettings()
    s1 = s0.with_threshold("co2", "danger_high", "1800")
    assert s1.custom_thresholds == {"co2": {"danger_high": 1800.0}}
    assert s0.custom_thresholds == {}  # unchanged

    s2 = s1.with_threshold("co2", "normal_high", 900)
    assert s2.thresholds_for("co2") == {"danger_high": 1800.0, "normal_high": 900.0}

    s3 = s2.with_threshold("co2", "danger_high", "")
    assert s3.thresholds_for("co2") == {"normal_high": 900.0}

    s4 = s3.with_threshold("co2", "normal_high", None)
    assert "co2" not in s4.custom_thresholds


def test_with_threshold_errors() -> None:
    s = DashboardSettings()
    with pytest.raises(KeyError):
        s.with_threshold("co2", "critical", 1)
    with pytest.raises(KeyError):
        s.with_threshold("radon", "danger_high", 1)
    with pytest.raises(ValueError):
        s.with_threshold("co2", "danger_high", "lots")


def test_reset_thresholds() -> None:
    s = (
        DashboardSettings()
        .with_threshold("co2", "danger_high", 1500)
        .with_threshold("humidity", "ideal_low", 40)
    )
    one = s.reset_thresholds("co2")
    assert set(one.custom_thresholds) == {"humidity"}
    assert s.reset_thresholds().custom_thresholds == {}


def test_resolve_theme() -> None:
    assert DashboardSettings(theme="dark").resolve_theme() == "dark"
    assert DashboardSettings(theme="system").resolve_theme(system_prefers_dark=True) == "dark"
    assert DashboardSettings(theme="system").resolve_theme() == "light"
    assert DashboardSettings().with_theme("dark").theme == "dark"


# -----------------------------------------------------------------------
# Serialization and persistence
# -----------------------------------------------------------------------


def test_settings_dict_roundtrip() -> None:
    s = DashboardSettings(theme="system", history_capacity=120, spectrum_method="fft").with_threshold(
        "temp", "danger_high", 36.5
    )
    d = s.to_dict()
    json.dumps(d)  # JSON-friendly
    assert DashboardSettings.from_dict(d) == s


def test_from_dict_rejects_unknown_keys() -> None:
    with pytest.raises(KeyError):
        DashboardSettings.from_dict({"theme": "dark", "font": "large"})


def test_store_missing_file_gives_defaults(tmp_path) -> None:
    store = SettingsStore(tmp_path / "settings.json")
    assert store.load() == DashboardSettings()
    assert store.warnings == ()


def test_store_save_and_load(tmp_path) -> None:
    store = SettingsStore(tmp_path / "nested" / "settings.json")
    s = DashboardSettings(theme="dark").with_threshold("co", "danger_high", 35)
    p = store.save(s)
    assert p.exists()
    assert SettingsStore(p).load() == s


@pytest.mark.parametrize("payload", ["{not json", "[1, 2, 3]", '{"theme": "neon"}', '{"colour": "red"}'])
def test_store_corrupted_file_falls_back(tmp_path, payload: str) -> None:
    p = tmp_path / "settings.json"
    p.write_text(payload, encoding="utf-8")
    store = SettingsStore(p)
    assert store.load() == DashboardSettings()
    assert len(store.warnings) == 1
    assert "Failed to parse settings" in store.warnings[0]
