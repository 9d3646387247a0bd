from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from cluster.index import ClusterIndex
from geo.aoi import BBox
from markers.types import VisibleItem


@dataclass(frozen=True)
class MapContext:
    """
    Request-scoped map context coming from the frontend.
    """

    dataset_id: str
    bbox: BBox
    view_zoom: float


@dataclass(frozen=True)
class EngineResult:
    """
    What an engine returns for a given request.

    `index` is the build the items were read from; cluster ids in `items` are only
    valid against it.
    """

    items: list[VisibleItem]
    index: ClusterIndex


class MarkerEngine(Protocol):
    def get(self, ctx: MapContext) -> EngineResult: ...
