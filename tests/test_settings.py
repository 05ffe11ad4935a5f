"""Tests for YAML settings loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from plancore.exceptions import ConfigurationError
from plancore.settings import CONFIG_ENV_VAR, Settings, SnapSettings, get_settings


def test_defaults_match_geometry_contract():
    settings = Settings()
    assert settings.topology.junction_tolerance == 1.0
    assert settings.rooms.min_room_area == 100.0
    assert settings.openings.corner_clearance == 10.0
    assert settings.openings.auto_clamp is False
    assert settings.snap.grid_size == 10.0


def test_bundled_config_loads():
    path = Path(__file__).resolve().parent.parent / "config" / "default.yaml"
    assert Settings.load(path) == Settings()


def test_load_partial_yaml(tmp_path):
    path = tmp_path / "plan.yaml"
    path.write_text("openings:\n  corner_clearance: 15\n  auto_clamp: true\nsnap:\n  grid_enabled: false\n")
    settings = Settings.load(path)
    assert settings.openings.corner_clearance == 15.0
    assert settings.openings.auto_clamp is True
    assert settings.snap.grid_enabled is False
    assert settings.topology.junction_tolerance == 1.0


def test_env_var_selects_file(tmp_path, monkeypatch):
    path = tmp_path / "env.yaml"
    path.write_text("rooms:\n  min_room_area: 5\n")
    monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
    assert Settings.load().rooms.min_room_area == 5.0


def test_missing_file(tmp_path):
    with pytest.raises(ConfigurationError) as exc_info:
        Settings.load(tmp_path / "missing.yaml")
    assert "not found" in exc_info.value.message


def test_invalid_values(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("openings:\n  corner_clearance: -3\n")
    with pytest.raises(ConfigurationError):
        Settings.load(path)


def test_invalid_yaml(tmp_path):
    path = tmp_path / "broken.yaml"
    path.write_text("openings: [unclosed\n")
    with pytest.raises(ConfigurationError):
        Settings.load(path)


def test_non_mapping_root(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- 1\n- 2\n")
    with pytest.raises(ConfigurationError):
        Settings.load(path)


def test_get_settings_is_cached(tmp_path):
    path = tmp_path / "cached.yaml"
    path.write_text("snap:\n  tolerance: 7\n")
    get_settings.cache_clear()
    try:
        first = get_settings(str(path))
        assert first is get_settings(str(path))
        assert first.snap.tolerance == 7.0
    finally:
        get_settings.cache_clear()


def test_non_positive_grid_is_allowed():
    assert SnapSettings(grid_size=0).grid_size == 0.0
