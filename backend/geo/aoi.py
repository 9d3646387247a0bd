from __future__ import annotations

from dataclasses import dataclass


def wrap_lon(lon: float) -> float:
    """Wrap a longitude into [-180, 180)."""
    return ((float(lon) + 180.0) % 360.0) - 180.0


@dataclass(frozen=True)
class BBox:
    """
    WGS84 bounding box in lon/lat degrees.

    Convention used throughout this repo:
    - minLon (west), minLat (south), maxLon (east), maxLat (north)
    - min_lon > max_lon means the box crosses the antimeridian
    - a longitude span >= 360 is the whole world
    - values outside [-180, 180] / [-90, 90] are allowed; queries clip them
    """

    min_lon: float
    min_lat: float
    max_lon: float
    max_lat: float

    @property
    def west(self) -> float:
        return self.min_lon

    @property
    def east(self) -> float:
        return self.max_lon

    @property
    def south(self) -> float:
        return self.min_lat

    @property
    def north(self) -> float:
        return self.max_lat

    def spans_world(self) -> bool:
        return float(self.max_lon) - float(self.min_lon) >= 360.0

    def lon_ranges(self) -> list[tuple[float, float]]:
        """
        Longitude intervals (each within [-180, 180]) covered by this box.

        One interval for a plain box, two when the box crosses the antimeridian.
        Longitudes -180 and 180 are the same meridian: a range touching one edge
        also gets the zero-width range at the other, so points stored at either
        value are found.
        """
        if self.spans_world():
            return [(-180.0, 180.0)]
        west = wrap_lon(self.min_lon)
        span = float(self.max_lon) - float(self.min_lon)
        if span < 0:
            # west > east: explicit wraparound form.
            span += 360.0
        east = west + span
        if east <= 180.0:
            ranges = [(west, east)]
        else:
            ranges = [(west, 180.0), (-180.0, east - 360.0)]
        starts = {w for w, _ in ranges}
        ends = {e for _, e in ranges}
        if -180.0 in starts and 180.0 not in ends:
            ranges.append((180.0, 180.0))
        if 180.0 in ends and -180.0 not in starts:
            ranges.append((-180.0, -180.0))
        return ranges

    def lat_range(self) -> tuple[float, float]:
        south = max(-90.0, min(90.0, min(self.min_lat, self.max_lat)))
        north = max(-90.0, min(90.0, max(self.min_lat, self.max_lat)))
        return south, north

    @property
    def wraps(self) -> bool:
        return sum(1 for w, e in self.lon_ranges() if w < e) > 1

    def contains(self, lon: float, lat: float) -> bool:
        south, north = self.lat_range()
        if not south <= lat <= north:
            return False
        return any(w <= lon <= e for w, e in self.lon_ranges())

