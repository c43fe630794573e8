"""Tests for config persistence."""

from __future__ import annotations

import json
import os
from pathlib import Path

from digital_rain import config


def test_load_defaults_when_missing(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setattr(config, "get_config_dir", lambda: tmp_path)
    assert config.load_config() == config.RainConfig()


def test_load_defaults_when_corrupt(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setattr(config, "get_config_dir", lambda: tmp_path)
    (tmp_path / "config.json").write_text("{not-json", encoding="utf-8")
    assert config.load_config() == config.RainConfig()


def test_load_defaults_when_not_a_mapping(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setattr(config, "get_config_dir", lambda: tmp_path)
    (tmp_path / "config.json").write_text("[1, 2]", encoding="utf-8")
    assert config.load_config() == config.RainConfig()


def test_save_load_round_trip(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setattr(config, "get_config_dir", lambda: tmp_path)
    original = config.RainConfig(
        density=0.8,
        tick_interval_ms=20,
        refresh_interval_ms=40,
        min_update_interval_ms=60,
        max_update_interval_ms=120,
        length_ratio=0.5,
        mutation_chance=0.1,
        on_sink_error="abort",
        show_debug=True,
        seed=99,
    )
    path = config.save_config(original)
    assert path == tmp_path / "config.json"
    assert config.load_config() == original


def test_save_config_atomic_write(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setattr(config, "get_config_dir", lambda: tmp_path)
    replaced: list[tuple[Path, Path]] = []

    def fake_replace(src: Path, dest: Path) -> None:
        replaced.append((src, dest))
        data = json.loads(src.read_text(encoding="utf-8"))
        assert "density" in data
        dest.write_text(json.dumps(data), encoding="utf-8")

    monkeypatch.setattr(config.os, "replace", fake_replace)
    config.save_config(config.RainConfig())
    src, dest = replaced[0]
    assert src.suffix == ".tmp"
    assert dest.name == "config.json"


def test_config_from_mapping_sanitizes_values() -> None:
    raw = {
        "density": "thick",
        "tick_interval_ms": 0,
        "refresh_interval_ms": True,
        "min_update_interval_ms": 300,
        "max_update_interval_ms": 100,
        "length_ratio": 4,
        "mutation_chance": -1,
        "on_sink_error": "retry",
        "show_debug": "yes",
        "seed": "abc",
    }
    cfg = config._config_from_mapping(raw)
    assert cfg.density == 0.5
    assert cfg.tick_interval_ms == 1
    assert cfg.refresh_interval_ms == 33
    assert (cfg.min_update_interval_ms, cfg.max_update_interval_ms) == (100, 300)
    assert cfg.length_ratio == 1.0
    assert cfg.mutation_chance == 0.0
    assert cfg.on_sink_error == "skip"
    assert cfg.show_debug is False
    assert cfg.seed is None


def test_interval_range_in_seconds() -> None:
    cfg = config.RainConfig(min_update_interval_ms=50, max_update_interval_ms=250)
    assert cfg.interval_range == (0.05, 0.25)


def test_get_config_dir_os_defaults(monkeypatch, tmp_path: Path) -> None:
    if os.name == "nt":
        monkeypatch.setenv("APPDATA", str(tmp_path))
        assert config.get_config_dir("rain") == tmp_path / "rain"
    else:
        monkeypatch.setattr(config, "_is_macos", lambda: False)
        xdg = tmp_path / "xdg"
        monkeypatch.setenv("XDG_CONFIG_HOME", str(xdg))
        path = config.get_config_dir("rain")
        assert path == xdg / "rain"
        assert path.is_dir()
