from __future__ import annotations

import threading

import duckdb

from settings import get_settings
from telemetry.store import TelemetryStore

_STORE: TelemetryStore | None = None
_STORE_LOCK = threading.RLock()


def get_store() -> TelemetryStore | None:
    """The process-wide store, or None when telemetry is switched off."""
    global _STORE
    settings = get_settings()
    if not settings.telemetry_enabled:
        return None
    path = settings.telemetry_path
    with _STORE_LOCK:
        if _STORE is not None:
            if _STORE.path.resolve() == path.resolve():
                return _STORE
            # Path changed (tests do this); reopen there.
            _STORE.stop(timeout_s=2.0)
            _STORE.conn.close()
            _STORE = None

        path.parent.mkdir(parents=True, exist_ok=True)
        _STORE = TelemetryStore(path=path, conn=duckdb.connect(str(path)))
        _STORE.ensure_schema()
        _STORE.start()
        return _STORE


def reset_store() -> None:
    """Drop all recorded events and delete the database file."""
    global _STORE
    with _STORE_LOCK:
        if _STORE is not None:
            _STORE.reset()
            _STORE = None
        else:
            get_settings().telemetry_path.unlink(missing_ok=True)
