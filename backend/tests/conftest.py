import sys
from pathlib import Path

import pytest


# Ensure `backend/` is on sys.path so tests can import local modules
# like `geo.*`, `cluster.*`, and `main`.
BACKEND_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BACKEND_ROOT))


@pytest.fixture(autouse=True)
def _isolated_telemetry(tmp_path, monkeypatch):
    monkeypatch.setenv("MARKERS_TELEMETRY_PATH", str(tmp_path / "telemetry.duckdb"))
    monkeypatch.setenv("MARKERS_TELEMETRY", "0")
