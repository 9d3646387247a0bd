from __future__ import annotations


class ClusterError(Exception):
    """Base class for errors raised by the clustering core."""


class InvalidOptions(ClusterError, ValueError):
    """Malformed build configuration (e.g. min_zoom > max_zoom, radius <= 0)."""


class InvalidPoint(ClusterError, ValueError):
    """An input point that cannot be indexed (duplicate id, bad coordinates)."""


class UnknownCluster(ClusterError, LookupError):
    """
    The cluster id does not exist in this index build.

    Either the index was rebuilt since the id was issued, or the id belongs to a leaf
    point (leaf points are not expandable).
    """

    def __init__(self, cluster_id: int):
        super().__init__(f"Unknown cluster id: {cluster_id}")
        self.cluster_id = cluster_id
