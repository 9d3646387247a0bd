from __future__ import annotations

import math
from functools import lru_cache

from pyproj import Transformer

from geo.aoi import BBox


_MAX_MERCATOR_LAT = 85.05112878
# Half the EPSG:3857 world width in metres.
_HALF_WORLD_M = 20037508.342789244


@lru_cache(maxsize=1)
def transformer_4326_to_3857() -> Transformer:
    return Transformer.from_crs("EPSG:4326", "EPSG:3857", always_xy=True)


@lru_cache(maxsize=1)
def transformer_3857_to_4326() -> Transformer:
    return Transformer.from_crs("EPSG:3857", "EPSG:4326", always_xy=True)


def lonlat_to_mercator(lon: float, lat: float) -> tuple[float, float]:
    """
    Project lon/lat (EPSG:4326) to Web Mercator metres (EPSG:3857).
    """
    lat = max(-_MAX_MERCATOR_LAT, min(_MAX_MERCATOR_LAT, float(lat)))
    x, y = transformer_4326_to_3857().transform(float(lon), lat)
    return float(x), float(y)


def mercator_to_lonlat(x: float, y: float) -> tuple[float, float]:
    lon, lat = transformer_3857_to_4326().transform(float(x), float(y))
    return float(lon), float(lat)


def radius_m_for_zoom(radius_px: float, zoom: int, *, extent: int = 512) -> float:
    """
    Screen-pixel radius expressed in mercator metres at `zoom`.

    At zoom z the world is `extent * 2**z` pixels wide.
    """
    world_px = float(extent) * (2 ** int(zoom))
    return float(radius_px) * (2.0 * _HALF_WORLD_M) / world_px


def level_zoom_for_view_zoom(view_zoom: float, min_zoom: int, max_zoom: int) -> int:
    """
    Indexed integer zoom for a (possibly fractional) map zoom.

    Rounds down, so a map at 12.7 uses the level built for 12.
    """
    z = int(math.floor(float(view_zoom)))
    return max(int(min_zoom), min(int(max_zoom), z))


def lonlat_to_tile(zoom: int, lon: float, lat: float) -> tuple[int, int]:
    """
    Convert lon/lat in EPSG:4326 to slippy tile (x, y) at zoom.
    """
    z = int(zoom)
    n = 2**z

    lat = max(-_MAX_MERCATOR_LAT, min(_MAX_MERCATOR_LAT, float(lat)))
    lat_rad = math.radians(lat)

    x = int(math.floor((float(lon) + 180.0) / 360.0 * n))
    y = int(
        math.floor(
            (1.0 - math.log(math.tan(lat_rad) + (1.0 / math.cos(lat_rad))) / math.pi)
            / 2.0
            * n
        )
    )
    x = max(0, min(n - 1, x))
    y = max(0, min(n - 1, y))
    return x, y


def tile_bbox_4326(zoom: int, x: int, y: int) -> BBox:
    """
    Slippy tile (z/x/y) bounds as a WGS84 lon/lat bbox.
    """
    z = int(zoom)
    n = 2**z
    x = int(x)
    y = int(y)

    lon_left = x / n * 360.0 - 180.0
    lon_right = (x + 1) / n * 360.0 - 180.0

    def lat_from_tile_y(tile_y: int) -> float:
        # https://wiki.openstreetmap.org/wiki/Slippy_map_tilenames
        t = math.pi * (1.0 - 2.0 * tile_y / n)
        return math.degrees(math.atan(math.sinh(t)))

    return BBox(
        min_lon=lon_left,
        min_lat=lat_from_tile_y(y + 1),
        max_lon=lon_right,
        max_lat=lat_from_tile_y(y),
    )
