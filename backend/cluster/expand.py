from __future__ import annotations

from cluster.index import ClusterIndex
from markers.errors import UnknownCluster
from markers.types import ClusterRecord, PointFeature, VisibleItem


def get_cluster(index: ClusterIndex, cluster_id: int) -> ClusterRecord:
    record = index.clusters.get(cluster_id)
    if record is None:
        raise UnknownCluster(cluster_id)
    return record


def expand_cluster(index: ClusterIndex, cluster_id: int) -> list[PointFeature]:
    """
    Every leaf point aggregated by the cluster, across all finer zoom levels.

    Points are returned in ascending id order.
    """
    record = get_cluster(index, cluster_id)
    return [index.point(pid) for pid in record.member_ids]


def cluster_children(index: ClusterIndex, cluster_id: int) -> list[VisibleItem]:
    """
    The items the cluster splits into one zoom level finer.
    """
    return list(get_cluster(index, cluster_id).children)


def cluster_leaves(
    index: ClusterIndex,
    cluster_id: int,
    *,
    limit: int | None = 10,
    offset: int = 0,
) -> list[PointFeature]:
    """
    A page of `expand_cluster`. `limit=None` returns everything after `offset`.
    """
    record = get_cluster(index, cluster_id)
    start = max(0, int(offset))
    end = None if limit is None else start + max(0, int(limit))
    return [index.point(pid) for pid in record.member_ids[start:end]]


def cluster_expansion_zoom(index: ClusterIndex, cluster_id: int) -> int:
    """
    Smallest zoom at which the cluster no longer shows as one item.
    """
    record = get_cluster(index, cluster_id)
    return min(record.zoom + 1, index.options.max_zoom)
