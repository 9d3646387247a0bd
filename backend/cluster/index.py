from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from itertools import count
from types import MappingProxyType
from typing import Any, Iterable, Iterator, Mapping

from shapely.geometry import Point
from shapely.geometry import box as shapely_box
from shapely.strtree import STRtree

from cluster.options import ClusterOptions
from geo.aoi import BBox
from geo.tiles import (
    level_zoom_for_view_zoom,
    lonlat_to_mercator,
    mercator_to_lonlat,
    radius_m_for_zoom,
)
from markers.store import PointSnapshot
from markers.types import (
    ClusterItem,
    ClusterRecord,
    PointFeature,
    PointItem,
    VisibleItem,
)


@dataclass(frozen=True, eq=False)
class IndexLevel:
    """
    Items visible at one integer zoom, plus an STRtree over their lon/lat positions.

    `items` are ordered by the smallest leaf point id they contain.
    """

    zoom: int
    items: tuple[VisibleItem, ...]
    tree: STRtree = field(repr=False)

    def query_bbox(self, bbox: BBox) -> list[VisibleItem]:
        if not self.items:
            return []
        south, north = bbox.lat_range()
        hits: set[int] = set()
        for west, east in bbox.lon_ranges():
            hits.update(_to_int_list(self.tree.query(shapely_box(west, south, east, north))))
        return [self.items[i] for i in sorted(hits)]


@dataclass(frozen=True, eq=False)
class ClusterIndex:
    """
    Multi-resolution cluster index for one point snapshot.

    Immutable once built: queries only read it, so one instance can serve concurrent
    readers while a newer build replaces it in the host's slot.
    """

    options: ClusterOptions
    snapshot: PointSnapshot
    levels: Mapping[int, IndexLevel] = field(repr=False)
    clusters: Mapping[int, ClusterRecord] = field(repr=False)
    _points_by_id: Mapping[int, PointFeature] = field(repr=False)

    @property
    def fingerprint(self) -> str:
        return self.snapshot.fingerprint

    @property
    def points(self) -> tuple[PointFeature, ...]:
        return self.snapshot.points

    def is_empty(self) -> bool:
        return not self.snapshot.points

    def level_for_zoom(self, view_zoom: float) -> IndexLevel:
        z = level_zoom_for_view_zoom(
            view_zoom, self.options.min_zoom, self.options.max_zoom
        )
        return self.levels[z]

    def point(self, point_id: int) -> PointFeature:
        return self._points_by_id[point_id]


@dataclass(frozen=True)
class _Node:
    # Position in EPSG:3857 metres.
    x: float
    y: float
    count: int
    min_id: int
    member_ids: tuple[int, ...]
    item: VisibleItem


def build_cluster_index(
    points: PointSnapshot | Iterable[PointFeature],
    options: ClusterOptions | None = None,
) -> ClusterIndex:
    """
    Build every zoom level from `max_zoom` down to `min_zoom`.

    `max_zoom` holds each point on its own; every coarser level merges the items of the
    level above whose centroids lie within the zoom's pixel radius (in Web Mercator).
    Seeds and merge candidates are visited in ascending point id order, so identical
    input always produces the same clusters and cluster ids.
    """
    opts = (options or ClusterOptions()).validated()
    snapshot = points if isinstance(points, PointSnapshot) else PointSnapshot.of(points)

    generation = _generation(snapshot, opts)
    seq = count()
    clusters: dict[int, ClusterRecord] = {}

    nodes = [_leaf_node(p) for p in snapshot.points]
    levels: dict[int, IndexLevel] = {opts.max_zoom: _make_level(opts.max_zoom, nodes, opts)}
    for z in range(opts.max_zoom - 1, opts.min_zoom - 1, -1):
        nodes = _cluster_nodes(nodes, z, opts, generation, seq, clusters)
        levels[z] = _make_level(z, nodes, opts)

    return ClusterIndex(
        options=opts,
        snapshot=snapshot,
        levels=MappingProxyType(levels),
        clusters=MappingProxyType(clusters),
        _points_by_id=MappingProxyType({p.id: p for p in snapshot.points}),
    )


def _generation(snapshot: PointSnapshot, opts: ClusterOptions) -> int:
    # Cluster ids are `generation << 32 | sequence`, so ids issued by a build over
    # different points or options are unknown to this one.
    h = hashlib.blake2b(digest_size=4)
    h.update(snapshot.fingerprint.encode("ascii"))
    h.update(repr(opts).encode("utf-8"))
    return int.from_bytes(h.digest(), "big") & 0x7FFFFFFF


def _leaf_node(p: PointFeature) -> _Node:
    x, y = lonlat_to_mercator(p.lon, p.lat)
    return _Node(
        x=x, y=y, count=1, min_id=p.id, member_ids=(p.id,), item=PointItem(point=p)
    )


def _cluster_nodes(
    nodes: list[_Node],
    zoom: int,
    opts: ClusterOptions,
    generation: int,
    seq: Iterator[int],
    clusters: dict[int, ClusterRecord],
) -> list[_Node]:
    if len(nodes) < 2:
        return list(nodes)

    r = radius_m_for_zoom(opts.radius_px, zoom, extent=opts.extent)
    r2 = r * r
    tree = STRtree([Point(n.x, n.y) for n in nodes], node_capacity=opts.node_size)
    visited = [False] * len(nodes)

    out: list[_Node] = []
    for i, seed in enumerate(nodes):
        if visited[i]:
            continue
        visited[i] = True

        members = [seed]
        window = shapely_box(seed.x - r, seed.y - r, seed.x + r, seed.y + r)
        # `nodes` is ordered by min_id, so ascending index == ascending point id.
        for j in sorted(_to_int_list(tree.query(window))):
            if visited[j]:
                continue
            other = nodes[j]
            dx = other.x - seed.x
            dy = other.y - seed.y
            if dx * dx + dy * dy <= r2:
                visited[j] = True
                members.append(other)

        if len(members) == 1:
            out.append(seed)
        else:
            out.append(_merge(members, zoom, (generation << 32) | next(seq), clusters))

    # Seeds are taken in min_id order and a merged node keeps its seed's min_id,
    # so `out` is already ordered by min_id.
    return out


def _merge(
    members: list[_Node],
    zoom: int,
    cluster_id: int,
    clusters: dict[int, ClusterRecord],
) -> _Node:
    total = sum(m.count for m in members)
    x = sum(m.x * m.count for m in members) / total
    y = sum(m.y * m.count for m in members) / total
    lon, lat = mercator_to_lonlat(x, y)
    member_ids = tuple(sorted(pid for m in members for pid in m.member_ids))

    record = ClusterRecord(
        cluster_id=cluster_id,
        lon=lon,
        lat=lat,
        point_count=total,
        zoom=zoom,
        member_ids=member_ids,
        children=tuple(m.item for m in members),
    )
    clusters[cluster_id] = record
    return _Node(
        x=x,
        y=y,
        count=total,
        min_id=members[0].min_id,
        member_ids=member_ids,
        item=ClusterItem(cluster=record),
    )


def _make_level(zoom: int, nodes: list[_Node], opts: ClusterOptions) -> IndexLevel:
    items = tuple(n.item for n in nodes)
    geoms = [Point(float(it.lon), float(it.lat)) for it in items]
    return IndexLevel(
        zoom=zoom, items=items, tree=STRtree(geoms, node_capacity=opts.node_size)
    )


def _to_int_list(idxs: Any) -> list[int]:
    if idxs is None:
        return []
    return [int(i) for i in idxs]
