from __future__ import annotations

from pathlib import Path

from settings import get_settings


def test_defaults_point_into_repo(monkeypatch):
    for name in ("MARKERS_DATASETS_ROOT", "MARKERS_DATASET", "MARKERS_TELEMETRY", "MARKERS_TELEMETRY_PATH"):
        monkeypatch.delenv(name, raising=False)
    s = get_settings()
    repo = Path(__file__).resolve().parents[2]
    assert s.repo_root == repo
    assert s.datasets_root == repo / "datasets"
    assert s.default_dataset is None
    assert s.telemetry_enabled is True
    assert s.telemetry_path == repo / "data" / "telemetry" / "telemetry.duckdb"


def test_env_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("MARKERS_DATASETS_ROOT", str(tmp_path))
    monkeypatch.setenv("MARKERS_DATASET", " sample_pois ")
    monkeypatch.setenv("MARKERS_TELEMETRY", "Off")
    monkeypatch.setenv("MARKERS_TELEMETRY_PATH", str(tmp_path / "t.duckdb"))
    s = get_settings()
    assert s.datasets_root == tmp_path
    assert s.default_dataset == "sample_pois"
    assert s.telemetry_enabled is False
    assert s.telemetry_path == tmp_path / "t.duckdb"


def test_settings_are_read_per_call(monkeypatch):
    monkeypatch.setenv("MARKERS_TELEMETRY", "1")
    assert get_settings().telemetry_enabled is True
    monkeypatch.setenv("MARKERS_TELEMETRY", "no")
    assert get_settings().telemetry_enabled is False
