from __future__ import annotations

import json
from pathlib import Path

from markers.types import PointFeature


def load_geojson_points(path: Path) -> list[PointFeature]:
    """
    Input: GeoJSON FeatureCollection of `Point` features.

    Point id comes from the feature `id`, then `properties.id`, then the feature's
    position in the file. Non-point geometries are skipped.
    """
    data = json.loads(path.read_text(encoding="utf-8"))
    features = data.get("features") or []

    out: list[PointFeature] = []
    for i, feature in enumerate(features):
        geom = (feature or {}).get("geometry") or {}
        props = (feature or {}).get("properties") or {}
        if geom.get("type") != "Point":
            continue
        coords = geom.get("coordinates")
        if not coords or len(coords) < 2:
            continue

        raw_id = (feature or {}).get("id")
        if raw_id is None:
            raw_id = props.get("id", i)

        out.append(
            PointFeature(
                id=int(raw_id),
                lon=float(coords[0]),
                lat=float(coords[1]),
                tag=dict(props),
            )
        )

    return out
