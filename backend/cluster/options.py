from __future__ import annotations

import math
from dataclasses import dataclass

from markers.errors import InvalidOptions


# 2**30 * 512 px is already far below a millimetre per pixel.
_MAX_SUPPORTED_ZOOM = 30


@dataclass(frozen=True)
class ClusterOptions:
    # Clustering aggressiveness in screen pixels.
    radius_px: float = 40.0
    min_zoom: int = 0
    max_zoom: int = 16
    # STRtree node capacity.
    node_size: int = 64
    # Tile size in pixels used to turn the pixel radius into metres.
    extent: int = 512

    def validated(self) -> "ClusterOptions":
        r = float(self.radius_px)
        if not math.isfinite(r) or r <= 0:
            raise InvalidOptions(f"radius_px must be > 0, got {self.radius_px}")
        if int(self.min_zoom) != self.min_zoom or int(self.max_zoom) != self.max_zoom:
            raise InvalidOptions("min_zoom/max_zoom must be integers")
        if self.min_zoom < 0:
            raise InvalidOptions(f"min_zoom must be >= 0, got {self.min_zoom}")
        if self.max_zoom > _MAX_SUPPORTED_ZOOM:
            raise InvalidOptions(
                f"max_zoom must be <= {_MAX_SUPPORTED_ZOOM}, got {self.max_zoom}"
            )
        if self.min_zoom > self.max_zoom:
            raise InvalidOptions(
                f"min_zoom ({self.min_zoom}) > max_zoom ({self.max_zoom})"
            )
        if int(self.node_size) < 2:
            raise InvalidOptions(f"node_size must be >= 2, got {self.node_size}")
        if int(self.extent) <= 0:
            raise InvalidOptions(f"extent must be > 0, got {self.extent}")
        return ClusterOptions(
            radius_px=r,
            min_zoom=int(self.min_zoom),
            max_zoom=int(self.max_zoom),
            node_size=int(self.node_size),
            extent=int(self.extent),
        )
