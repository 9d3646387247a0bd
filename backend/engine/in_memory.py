from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Iterable

from cluster.index import ClusterIndex, build_cluster_index
from cluster.options import ClusterOptions
from cluster.query import query_viewport
from engine.types import EngineResult, MapContext, MarkerEngine
from markers.store import PointSnapshot
from markers.types import PointFeature, Viewport


@dataclass(frozen=True)
class LoadResult:
    index: ClusterIndex
    rebuilt: bool


class InMemoryEngine(MarkerEngine):
    """
    Holds the current cluster index in memory and swaps it atomically on rebuild.

    A rebuild happens only when the snapshot fingerprint changes (point ids, positions
    or tags), not merely when the point count changes.
    """

    def __init__(
        self,
        points: Iterable[PointFeature] = (),
        *,
        options: ClusterOptions | None = None,
    ):
        self.options = (options or ClusterOptions()).validated()
        self._lock = threading.RLock()
        self._index = build_cluster_index(PointSnapshot.of(points), self.options)

    @property
    def index(self) -> ClusterIndex:
        # Reference reads are atomic; callers keep whatever build they got.
        return self._index

    def load(self, points: Iterable[PointFeature] | PointSnapshot) -> LoadResult:
        snapshot = points if isinstance(points, PointSnapshot) else PointSnapshot.of(points)
        with self._lock:
            current = self._index
            if snapshot.fingerprint == current.fingerprint:
                return LoadResult(index=current, rebuilt=False)
            index = build_cluster_index(snapshot, self.options)
            self._index = index
            return LoadResult(index=index, rebuilt=True)

    def add_point(self, lon: float, lat: float, tag: Any = None) -> LoadResult:
        """
        Publish a new snapshot with one more point (id = current max id + 1).
        """
        with self._lock:
            snapshot = self._index.snapshot
            point = PointFeature(
                id=snapshot.next_id(), lon=float(lon), lat=float(lat), tag=tag
            )
            return self.load(snapshot.with_point(point))

    def get(self, ctx: MapContext) -> EngineResult:
        index = self._index
        items = query_viewport(index, Viewport(bbox=ctx.bbox, zoom=ctx.view_zoom))
        return EngineResult(items=items, index=index)
