from __future__ import annotations

import threading
import time
from typing import Any, Literal

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field, model_validator

from catalog.load import load_dataset_points
from catalog.registry import get_dataset, list_datasets
from cluster.expand import (
    cluster_children,
    cluster_expansion_zoom,
    cluster_leaves,
    expand_cluster,
)
from engine.in_memory import InMemoryEngine, LoadResult
from engine.types import MapContext
from geo.aoi import BBox
from geo.region import Region, region_to_bbox
from markers.types import PointFeature, VisibleItem
from telemetry.singleton import get_store, reset_store

router = APIRouter()


class ApiBBox(BaseModel):
    minLon: float
    minLat: float
    maxLon: float
    maxLat: float


class ApiRegion(BaseModel):
    latitude: float
    longitude: float
    latitudeDelta: float = Field(ge=0.0)
    # Negative when the visible span crosses the antimeridian.
    longitudeDelta: float


class ClustersRequest(BaseModel):
    dataset: str | None = None
    zoom: float = Field(ge=0.0, le=30.0)
    bbox: ApiBBox | None = None
    region: ApiRegion | None = None

    @model_validator(mode="after")
    def _one_extent(self) -> "ClustersRequest":
        if (self.bbox is None) == (self.region is None):
            raise ValueError("Provide exactly one of `bbox` or `region`")
        return self


class ApiItem(BaseModel):
    kind: Literal["cluster", "point"]
    id: int
    lon: float
    lat: float
    pointCount: int
    tag: Any = None


class ApiPoint(BaseModel):
    id: int
    lon: float
    lat: float
    tag: Any = None


class NewPointRequest(BaseModel):
    lon: float
    lat: float
    tag: Any = Field(default_factory=lambda: {"color": "green"})


class ReplacePointsRequest(BaseModel):
    points: list[ApiPoint]


# One engine per dataset id; holds points added at runtime, so never evicted.
_ENGINES: dict[str, InMemoryEngine] = {}
_ENGINES_LOCK = threading.Lock()


def _engine(dataset_id: str) -> InMemoryEngine:
    with _ENGINES_LOCK:
        engine = _ENGINES.get(dataset_id)
        if engine is None:
            entry = get_dataset(dataset_id)
            engine = InMemoryEngine(
                load_dataset_points(dataset_id),
                options=entry.config.clustering.to_options(),
            )
            _ENGINES[dataset_id] = engine
        return engine


def reset_engines() -> None:
    with _ENGINES_LOCK:
        _ENGINES.clear()


def _item_out(item: VisibleItem) -> ApiItem:
    return ApiItem(
        kind=item.kind,
        id=item.id,
        lon=item.lon,
        lat=item.lat,
        pointCount=item.point_count,
        tag=item.tag if item.kind == "point" else None,
    )


def _point_out(p: PointFeature) -> ApiPoint:
    return ApiPoint(id=p.id, lon=p.lon, lat=p.lat, tag=p.tag)


def _load_out(dataset_id: str, result: LoadResult) -> dict[str, Any]:
    return {
        "dataset": dataset_id,
        "rebuilt": result.rebuilt,
        "fingerprint": result.index.fingerprint,
        "pointCount": len(result.index.points),
    }


def _record(
    endpoint: str,
    dataset_id: str,
    *,
    view_zoom: float | None = None,
    bbox: BBox | None = None,
    stats: dict[str, Any],
) -> None:
    # Telemetry must never fail a request.
    try:
        store = get_store()
        if store is None:
            return
        store.record(
            endpoint=endpoint,
            dataset=dataset_id,
            view_zoom=view_zoom,
            bbox=(
                {
                    "minLon": bbox.min_lon,
                    "minLat": bbox.min_lat,
                    "maxLon": bbox.max_lon,
                    "maxLat": bbox.max_lat,
                }
                if bbox is not None
                else None
            ),
            stats=stats,
        )
    except Exception:
        pass


@router.get("/datasets")
def get_datasets() -> list[dict[str, Any]]:
    return [cfg.model_dump() for cfg in list_datasets()]


@router.post("/clusters")
def post_clusters(body: ClustersRequest) -> dict[str, Any]:
    dataset_id = get_dataset(body.dataset).config.id
    if body.region is not None:
        bbox = region_to_bbox(
            Region(
                latitude=body.region.latitude,
                longitude=body.region.longitude,
                latitude_delta=body.region.latitudeDelta,
                longitude_delta=body.region.longitudeDelta,
            )
        )
    elif body.bbox is not None:
        bbox = BBox(
            min_lon=body.bbox.minLon,
            min_lat=body.bbox.minLat,
            max_lon=body.bbox.maxLon,
            max_lat=body.bbox.maxLat,
        )

    t0 = time.perf_counter()
    engine = _engine(dataset_id)
    t_engine_ms = (time.perf_counter() - t0) * 1000.0

    t1 = time.perf_counter()
    result = engine.get(MapContext(dataset_id=dataset_id, bbox=bbox, view_zoom=body.zoom))
    t_query_ms = (time.perf_counter() - t1) * 1000.0

    items = [_item_out(it) for it in result.items]
    stats = {
        "dataset": dataset_id,
        "fingerprint": result.index.fingerprint,
        "levelZoom": result.index.level_for_zoom(body.zoom).zoom,
        "items": len(items),
        "clusters": sum(1 for it in items if it.kind == "cluster"),
        "timingsMs": {
            "engineGet": round(t_engine_ms, 2),
            "query": round(t_query_ms, 2),
            "total": round((time.perf_counter() - t0) * 1000.0, 2),
        },
    }
    _record("/clusters", dataset_id, view_zoom=body.zoom, bbox=bbox, stats=stats)
    return {"items": [it.model_dump() for it in items], "stats": stats}


@router.get("/clusters/{cluster_id}/points")
def get_cluster_points(cluster_id: int, dataset: str | None = None) -> list[ApiPoint]:
    dataset_id = get_dataset(dataset).config.id
    return [_point_out(p) for p in expand_cluster(_engine(dataset_id).index, cluster_id)]


@router.get("/clusters/{cluster_id}/children")
def get_cluster_children(cluster_id: int, dataset: str | None = None) -> list[ApiItem]:
    dataset_id = get_dataset(dataset).config.id
    return [
        _item_out(it) for it in cluster_children(_engine(dataset_id).index, cluster_id)
    ]


@router.get("/clusters/{cluster_id}/leaves")
def get_cluster_leaves(
    cluster_id: int,
    dataset: str | None = None,
    limit: int = Query(default=10, ge=0, le=10_000),
    offset: int = Query(default=0, ge=0),
) -> list[ApiPoint]:
    dataset_id = get_dataset(dataset).config.id
    leaves = cluster_leaves(
        _engine(dataset_id).index, cluster_id, limit=limit, offset=offset
    )
    return [_point_out(p) for p in leaves]


@router.get("/clusters/{cluster_id}/expansion-zoom")
def get_cluster_expansion_zoom(
    cluster_id: int, dataset: str | None = None
) -> dict[str, int]:
    dataset_id = get_dataset(dataset).config.id
    return {
        "clusterId": cluster_id,
        "zoom": cluster_expansion_zoom(_engine(dataset_id).index, cluster_id),
    }


@router.post("/datasets/{dataset_id}/points")
def post_point(dataset_id: str, body: NewPointRequest) -> dict[str, Any]:
    dataset_id = get_dataset(dataset_id).config.id
    t0 = time.perf_counter()
    result = _engine(dataset_id).add_point(body.lon, body.lat, body.tag)
    out = _load_out(dataset_id, result)
    _record(
        "/datasets/points",
        dataset_id,
        stats={**out, "timingsMs": {"total": round((time.perf_counter() - t0) * 1000.0, 2)}},
    )
    return out


@router.put("/datasets/{dataset_id}/points")
def put_points(dataset_id: str, body: ReplacePointsRequest) -> dict[str, Any]:
    dataset_id = get_dataset(dataset_id).config.id
    t0 = time.perf_counter()
    result = _engine(dataset_id).load(
        PointFeature(id=p.id, lon=p.lon, lat=p.lat, tag=p.tag) for p in body.points
    )
    out = _load_out(dataset_id, result)
    _record(
        "/datasets/points",
        dataset_id,
        stats={**out, "timingsMs": {"total": round((time.perf_counter() - t0) * 1000.0, 2)}},
    )
    return out


@router.get("/telemetry/summary")
def get_telemetry_summary(
    dataset: str | None = None,
    endpoint: str | None = None,
    since_ms: int | None = None,
) -> list[dict[str, Any]]:
    store = get_store()
    if store is None:
        return []
    store.flush(timeout_s=1.0)
    return store.summary(dataset=dataset, endpoint=endpoint, since_ms=since_ms)


@router.get("/telemetry/slowest")
def get_telemetry_slowest(
    dataset: str | None = None,
    endpoint: str | None = None,
    limit: int = 25,
) -> list[dict[str, Any]]:
    store = get_store()
    if store is None:
        return []
    store.flush(timeout_s=1.0)
    return store.slowest(dataset=dataset, endpoint=endpoint, limit=limit)


@router.delete("/telemetry")
def delete_telemetry() -> dict[str, bool]:
    reset_store()
    return {"ok": True}
