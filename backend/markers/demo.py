from __future__ import annotations

import random

from markers.types import PointFeature


def generate_random_markers(
    count: int = 100,
    *,
    seed: int | None = None,
    lat_range: tuple[float, float] = (-17.0, -15.0),
    lon_range: tuple[float, float] = (-49.0, -47.0),
) -> list[PointFeature]:
    """
    Random red/green markers scattered over a box (defaults: around Brasília).

    Ids are 0..count-1. Pass `seed` for a reproducible set.
    """
    rng = random.Random(seed)
    out: list[PointFeature] = []
    for i in range(int(count)):
        out.append(
            PointFeature(
                id=i,
                lon=rng.uniform(*lon_range),
                lat=rng.uniform(*lat_range),
                tag={"color": "red" if rng.random() > 0.5 else "green"},
            )
        )
    return out
