from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel

_OFF = {"0", "false", "no", "off"}


def _repo_root() -> Path:
    # .../backend/settings.py -> repo root is 1 level above backend/
    return Path(__file__).resolve().parents[1]


class HostSettings(BaseModel):
    """Process settings taken from `MARKERS_*` environment variables."""

    datasets_root: Path
    default_dataset: str | None = None
    telemetry_enabled: bool = True
    telemetry_path: Path

    @property
    def repo_root(self) -> Path:
        return _repo_root()


def _env(name: str) -> str:
    return (os.getenv(name) or "").strip()


def get_settings() -> HostSettings:
    # Read on every call; tests switch these per case with monkeypatch.
    root = _repo_root()
    return HostSettings(
        datasets_root=Path(_env("MARKERS_DATASETS_ROOT") or root / "datasets"),
        default_dataset=_env("MARKERS_DATASET") or None,
        telemetry_enabled=(_env("MARKERS_TELEMETRY") or "1").lower() not in _OFF,
        telemetry_path=Path(
            _env("MARKERS_TELEMETRY_PATH")
            or root / "data" / "telemetry" / "telemetry.duckdb"
        ),
    )
