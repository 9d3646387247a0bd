from __future__ import annotations

import hashlib
import json
import math
from dataclasses import dataclass
from typing import Iterable

from markers.errors import InvalidPoint
from markers.types import PointFeature


@dataclass(frozen=True)
class PointSnapshot:
    """
    Immutable, id-ordered copy of the caller's points handed to the index builder.

    `fingerprint` covers id, position and tag of every point, so editing a marker in
    place (same count) still yields a different snapshot.
    """

    points: tuple[PointFeature, ...]
    fingerprint: str

    @classmethod
    def of(cls, points: Iterable[PointFeature]) -> "PointSnapshot":
        seen: set[int] = set()
        out: list[PointFeature] = []
        for p in points:
            _validate_point(p)
            if p.id in seen:
                raise InvalidPoint(f"Duplicate point id: {p.id}")
            seen.add(p.id)
            out.append(p)
        out.sort(key=lambda p: p.id)
        return cls(points=tuple(out), fingerprint=_fingerprint(out))

    def __len__(self) -> int:
        return len(self.points)

    def next_id(self) -> int:
        return (self.points[-1].id + 1) if self.points else 1

    def with_point(self, point: PointFeature) -> "PointSnapshot":
        return PointSnapshot.of([*self.points, point])


def _validate_point(p: PointFeature) -> None:
    if not isinstance(p.id, int) or isinstance(p.id, bool):
        raise InvalidPoint(f"Point id must be an integer, got {p.id!r}")
    lon = float(p.lon)
    lat = float(p.lat)
    if not (math.isfinite(lon) and math.isfinite(lat)):
        raise InvalidPoint(f"Point {p.id} has non-finite coordinates")
    if not -180.0 <= lon <= 180.0:
        raise InvalidPoint(f"Point {p.id} longitude out of range: {lon}")
    if not -90.0 <= lat <= 90.0:
        raise InvalidPoint(f"Point {p.id} latitude out of range: {lat}")


def _fingerprint(points: list[PointFeature]) -> str:
    h = hashlib.blake2b(digest_size=16)
    for p in points:
        row = [p.id, float(p.lon), float(p.lat), p.tag]
        h.update(json.dumps(row, sort_keys=True, default=str).encode("utf-8"))
        h.update(b"\n")
    return h.hexdigest()
