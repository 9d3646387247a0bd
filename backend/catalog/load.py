from __future__ import annotations

from catalog.registry import get_dataset
from markers.demo import generate_random_markers
from markers.loaders import load_geojson_points
from markers.types import PointFeature


def load_dataset_points(dataset_id: str | None) -> list[PointFeature]:
    """
    Load the points a dataset's `source` describes.
    """
    entry = get_dataset(dataset_id)
    cfg = entry.config
    src = cfg.source

    if src.type == "demo":
        return generate_random_markers(
            src.count,
            seed=src.seed,
            lat_range=src.latRange,
            lon_range=src.lonRange,
        )
    if src.type == "geojson_points":
        path = entry.resolve(src.path or "")
        if not path.exists():
            raise FileNotFoundError(f"Dataset '{cfg.id}' missing file: {src.path}")
        return load_geojson_points(path)
    raise ValueError(f"Unknown dataset source type: {src.type}")
