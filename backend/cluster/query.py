from __future__ import annotations

from cluster.index import ClusterIndex
from geo.tiles import tile_bbox_4326
from markers.types import VisibleItem, Viewport


def query_viewport(index: ClusterIndex, viewport: Viewport) -> list[VisibleItem]:
    """
    Clusters and points whose position falls inside `viewport.bbox`.

    The level is chosen by flooring the viewport zoom and clamping it to the index's
    zoom range. Results come back ordered by the smallest leaf point id each item holds,
    so repeated calls against the same index return identical lists.
    """
    level = index.level_for_zoom(viewport.zoom)
    return level.query_bbox(viewport.bbox)


def query_tile(index: ClusterIndex, z: int, x: int, y: int) -> list[VisibleItem]:
    """
    Items inside slippy tile z/x/y at zoom z.
    """
    return query_viewport(index, Viewport(bbox=tile_bbox_4326(z, x, y), zoom=z))
