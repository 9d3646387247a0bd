from __future__ import annotations

from dataclasses import dataclass

from geo.aoi import BBox


@dataclass(frozen=True)
class Region:
    """
    A map "region" as reported by the map view: center plus angular deltas (degrees).
    """

    latitude: float
    longitude: float
    latitude_delta: float
    longitude_delta: float


def region_to_bbox(
    center: Region | tuple[float, float] | dict[str, float],
    lat_delta: float | None = None,
    lng_delta: float | None = None,
) -> BBox:
    """
    Convert a region into a lon/lat bbox.

    A negative longitude delta is how the map provider signals a span that crosses the
    antimeridian; the true span is then `lng_delta + 360`. No clamping is done here:
    the resulting box may extend past [-180, 180] / [-90, 90] and queries clip it.

    `center` is either a `Region` (deltas taken from it), a `(lat, lng)` tuple or a
    `{"latitude"/"lat": ..., "longitude"/"lng"/"lon": ...}` mapping.
    """
    if isinstance(center, Region):
        lat, lng = center.latitude, center.longitude
        if lat_delta is None:
            lat_delta = center.latitude_delta
        if lng_delta is None:
            lng_delta = center.longitude_delta
    elif isinstance(center, dict):
        lat = center.get("latitude", center.get("lat"))
        lng = center.get("longitude", center.get("lng", center.get("lon")))
    else:
        lat, lng = center

    lat = float(lat)  # type: ignore[arg-type]
    lng = float(lng)  # type: ignore[arg-type]
    lat_d = float(lat_delta or 0.0)
    lng_d = float(lng_delta or 0.0)
    if lng_d < 0:
        lng_d += 360.0

    return BBox(
        min_lon=lng - lng_d,
        min_lat=lat - lat_d,
        max_lon=lng + lng_d,
        max_lat=lat + lat_d,
    )


def bbox_to_region(bbox: BBox) -> Region:
    """
    Inverse of `region_to_bbox` for boxes without the negative-delta signal.
    """
    lng_span = float(bbox.max_lon) - float(bbox.min_lon)
    if lng_span < 0:
        lng_span += 360.0
    return Region(
        latitude=(bbox.min_lat + bbox.max_lat) / 2.0,
        longitude=bbox.min_lon + lng_span / 2.0,
        latitude_delta=(bbox.max_lat - bbox.min_lat) / 2.0,
        longitude_delta=lng_span / 2.0,
    )
