from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from cluster.options import ClusterOptions


class DatasetCenter(BaseModel):
    lat: float = Field(ge=-90.0, le=90.0)
    lon: float = Field(ge=-180.0, le=180.0)


class DatasetDefaultView(BaseModel):
    center: DatasetCenter
    zoom: float = Field(ge=0.0, le=24.0)
    # Region deltas the map opens with (degrees).
    latitudeDelta: float = Field(default=0.035, ge=0.0)
    longitudeDelta: float = Field(default=0.035)


DatasetSourceType = Literal["geojson_points", "demo"]


class DatasetSource(BaseModel):
    type: DatasetSourceType
    # Repo-relative path; required for file-backed sources.
    path: str | None = None
    # Demo generator knobs.
    count: int = Field(default=100, ge=0, le=1_000_000)
    seed: int | None = None
    latRange: tuple[float, float] = (-17.0, -15.0)
    lonRange: tuple[float, float] = (-49.0, -47.0)


class DatasetClustering(BaseModel):
    """
    Build options for the dataset's cluster index.

    Only shape is checked here; range checks (min <= max etc.) are done by
    `ClusterOptions.validated()` so the core keeps a single source of truth.
    """

    radiusPx: float = 40.0
    minZoom: int = 0
    maxZoom: int = 16
    nodeSize: int = 64
    extent: int = 512

    def to_options(self) -> ClusterOptions:
        return ClusterOptions(
            radius_px=self.radiusPx,
            min_zoom=self.minZoom,
            max_zoom=self.maxZoom,
            node_size=self.nodeSize,
            extent=self.extent,
        ).validated()


class DatasetConfig(BaseModel):
    id: str
    title: str
    enabled: bool = True
    defaultView: DatasetDefaultView
    source: DatasetSource
    clustering: DatasetClustering = Field(default_factory=DatasetClustering)
