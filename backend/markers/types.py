from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, TypeAlias, Union

from geo.aoi import BBox


@dataclass(frozen=True)
class PointFeature:
    """
    An input marker. `tag` is an opaque payload (e.g. `{"color": "red"}`).
    """

    id: int
    lon: float
    lat: float
    tag: Any = None


@dataclass(frozen=True)
class ClusterRecord:
    """
    A cluster at one or more zoom levels of a single index build.

    `zoom` is the level the cluster was formed at; it is split into `children` at
    `zoom + 1`. `member_ids` are the leaf point ids (ascending) across all finer levels.
    """

    cluster_id: int
    lon: float
    lat: float
    point_count: int
    zoom: int
    member_ids: tuple[int, ...]
    children: tuple["VisibleItem", ...]


@dataclass(frozen=True)
class ClusterItem:
    cluster: ClusterRecord
    kind: Literal["cluster"] = "cluster"

    @property
    def id(self) -> int:
        return self.cluster.cluster_id

    @property
    def lon(self) -> float:
        return self.cluster.lon

    @property
    def lat(self) -> float:
        return self.cluster.lat

    @property
    def point_count(self) -> int:
        return self.cluster.point_count


@dataclass(frozen=True)
class PointItem:
    point: PointFeature
    kind: Literal["point"] = "point"

    @property
    def id(self) -> int:
        return self.point.id

    @property
    def lon(self) -> float:
        return self.point.lon

    @property
    def lat(self) -> float:
        return self.point.lat

    @property
    def point_count(self) -> int:
        return 1

    @property
    def tag(self) -> Any:
        return self.point.tag


VisibleItem: TypeAlias = Union[ClusterItem, PointItem]


@dataclass(frozen=True)
class Viewport:
    """
    What the map shows after a pan/zoom settles. `zoom` may be fractional.
    """

    bbox: BBox
    zoom: float
