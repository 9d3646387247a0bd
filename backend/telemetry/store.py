from __future__ import annotations

import json
import queue
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import duckdb

from telemetry.sql import (
    CREATE_EVENTS_TABLE_SQL,
    INSERT_EVENTS_SQL,
    SLOWEST_SQL_TEMPLATE,
    SUMMARY_SQL_TEMPLATE,
)

_BATCH_MAX = 250
_BATCH_AGE_S = 0.5


def _num(v: Any) -> float | None:
    try:
        return None if v is None else float(v)
    except (TypeError, ValueError):
        return None


def _filters(
    dataset: str | None, endpoint: str | None, since_ms: int | None = None
) -> tuple[list[str], list[Any]]:
    clauses: list[str] = []
    params: list[Any] = []
    for clause, value in (
        ("dataset = ?", dataset),
        ("endpoint = ?", endpoint),
        ("ts_ms >= ?", since_ms),
    ):
        if value is not None and value != "":
            clauses.append(clause)
            params.append(value)
    return clauses, params


def _event_row(
    endpoint: str,
    dataset: str,
    view_zoom: float | None,
    bbox: dict[str, float] | None,
    stats: dict[str, Any],
) -> tuple:
    b = bbox or {}
    return (
        int(time.time() * 1000),
        str(endpoint),
        str(dataset),
        _num(view_zoom),
        _num(b.get("minLon")),
        _num(b.get("minLat")),
        _num(b.get("maxLon")),
        _num(b.get("maxLat")),
        json.dumps(stats, ensure_ascii=False, default=str),
    )


@dataclass
class TelemetryStore:
    """
    Request events for the marker host, appended to a DuckDB file.

    `record` only enqueues; one writer thread owns all inserts. Reads go through
    the same connection, since DuckDB will not open a file another process holds.
    """

    path: Path
    conn: duckdb.DuckDBPyConnection
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)
    _q: "queue.Queue[tuple]" = field(
        default_factory=lambda: queue.Queue(maxsize=10_000), repr=False
    )
    _stop: threading.Event = field(default_factory=threading.Event, repr=False)
    _flush_req: threading.Event = field(default_factory=threading.Event, repr=False)
    _worker: threading.Thread | None = field(default=None, repr=False)

    def ensure_schema(self) -> None:
        with self._lock:
            self.conn.execute(CREATE_EVENTS_TABLE_SQL)

    def start(self) -> None:
        if self._worker is not None:
            return
        self._stop.clear()
        self._worker = threading.Thread(
            target=self._run, name="telemetry-writer", daemon=True
        )
        self._worker.start()

    def stop(self, *, timeout_s: float = 2.0) -> None:
        self._stop.set()
        w = self._worker
        if w is not None and w.is_alive():
            w.join(timeout=timeout_s)
        self._worker = None

    def record(
        self,
        *,
        endpoint: str,
        dataset: str,
        view_zoom: float | None,
        bbox: dict[str, float] | None,
        stats: dict[str, Any],
    ) -> None:
        self.start()
        try:
            self._q.put_nowait(_event_row(endpoint, dataset, view_zoom, bbox, stats))
        except queue.Full:
            # Overloaded; events are best-effort.
            pass

    def flush(self, *, timeout_s: float = 2.0) -> None:
        """Block until everything recorded so far is visible to `summary`/`slowest`."""
        if self._worker is None:
            return
        self._flush_req.set()
        deadline = time.time() + timeout_s
        while time.time() < deadline:
            # The writer clears the request after writing a drained queue.
            if self._q.unfinished_tasks == 0 and not self._flush_req.is_set():
                break
            time.sleep(0.01)

    def summary(
        self,
        *,
        dataset: str | None = None,
        endpoint: str | None = None,
        since_ms: int | None = None,
    ) -> list[dict[str, Any]]:
        """Per (dataset, endpoint): request count, latency percentiles, items, rebuild rate."""
        clauses, params = _filters(dataset, endpoint, since_ms)
        where_sql = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        with self._lock:
            rows = self.conn.execute(
                SUMMARY_SQL_TEMPLATE.format(where_sql=where_sql), params
            ).fetchall()
        keys = (
            "dataset",
            "endpoint",
            "n",
            "avgTotalMs",
            "p50TotalMs",
            "p95TotalMs",
            "avgItems",
            "avgClusters",
            "rebuildRate",
        )
        out = []
        for row in rows:
            rec = dict(zip(keys, row))
            rec["n"] = int(rec["n"])
            for k in keys[3:]:
                rec[k] = _num(rec[k])
            out.append(rec)
        return out

    def slowest(
        self,
        *,
        dataset: str | None = None,
        endpoint: str | None = None,
        limit: int = 25,
    ) -> list[dict[str, Any]]:
        """Slowest recorded requests, with the viewport that produced them."""
        clauses, params = _filters(dataset, endpoint)
        clauses.insert(0, "json_extract(stats_json, '$.timingsMs.total') IS NOT NULL")
        params.append(max(1, min(200, int(limit))))
        with self._lock:
            rows = self.conn.execute(
                SLOWEST_SQL_TEMPLATE.format(where_sql=" AND ".join(clauses)), params
            ).fetchall()
        out = []
        for ts_ms, dataset_v, endpoint_v, total_ms, items, level, view_zoom, *bbox in rows:
            out.append(
                {
                    "tsMs": int(ts_ms),
                    "dataset": dataset_v,
                    "endpoint": endpoint_v,
                    "totalMs": _num(total_ms),
                    "items": int(items) if items is not None else None,
                    "levelZoom": int(level) if level is not None else None,
                    "viewZoom": _num(view_zoom),
                    "bbox": (
                        dict(zip(("minLon", "minLat", "maxLon", "maxLat"), bbox))
                        if bbox[0] is not None
                        else None
                    ),
                }
            )
        return out

    def reset(self) -> None:
        # The writer must be gone before the connection closes.
        self.stop(timeout_s=2.0)
        with self._lock:
            self.conn.close()
            self.path.unlink(missing_ok=True)

    def _write(self, batch: list[tuple]) -> None:
        if not batch:
            return
        with self._lock:
            self.conn.executemany(INSERT_EVENTS_SQL, batch)
            self.conn.execute("CHECKPOINT;")

    def _take(self, batch: list[tuple], *, timeout_s: float) -> None:
        try:
            batch.append(self._q.get(timeout=timeout_s))
        except queue.Empty:
            return
        self._q.task_done()

    def _run(self) -> None:
        self.ensure_schema()
        batch: list[tuple] = []
        oldest = time.time()
        while not self._stop.is_set():
            if not batch:
                oldest = time.time()
            self._take(batch, timeout_s=0.1)
            flush_now = self._flush_req.is_set() and self._q.empty()
            aged = batch and time.time() - oldest >= _BATCH_AGE_S
            if flush_now or aged or len(batch) >= _BATCH_MAX:
                self._write(batch)
                batch = []
                if flush_now:
                    self._flush_req.clear()

        while not self._q.empty():
            self._take(batch, timeout_s=0.0)
        self._write(batch)
