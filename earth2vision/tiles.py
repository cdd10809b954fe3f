"""
Tile overlay grid: placement of the decorative tiles on the globe and
zoom-driven opacity.
"""

import logging
from dataclasses import dataclass, field

import numpy as np

from .projection import GeoCoordinate, to_cartesian, orient_tangent
from .scene import Object3D
from .view_state import ZOOM_MIN, ZOOM_MAX

log = logging.getLogger("e2v.tiles")

# name -> (lat_step, lon_step, lat_limit)
DENSITY_PRESETS = {
    "low": (10.0, 10.0, 80.0),
    "medium": (8.0, 8.0, 80.0),
    "high": (5.0, 5.0, 85.0),
}


@dataclass
class Tile:
    coordinate: GeoCoordinate
    radius: float
    opacity: float = 0.0
    node: Object3D = field(default=None, repr=False, compare=False)


def _inclusive_steps(start, stop, step):
    """Values start, start+step, ... up to and including stop (when it lands on it)."""
    if step <= 0:
        raise ValueError(f"step must be positive: {step}")
    count = int(np.floor((stop - start) / step + 1e-9)) + 1
    return [start + i * step for i in range(max(count, 0))]


class TileGridGenerator:
    """Builds the tile grid and keeps its opacity in sync with zoom.

    Opacity falls linearly from `near_opacity` at zoom 1 to `far_opacity`
    at zoom 5.
    """

    def __init__(self, near_opacity=0.35, far_opacity=0.05, tile_size=0.2):
        if near_opacity < far_opacity:
            raise ValueError("near_opacity must not be below far_opacity")
        self.near_opacity = near_opacity
        self.far_opacity = far_opacity
        self.tile_size = tile_size
        self.tiles = []
        self._globe = None

    def opacity_for_zoom(self, zoom_level: float) -> float:
        z = min(max(zoom_level, ZOOM_MIN), ZOOM_MAX)
        t = (z - ZOOM_MIN) / (ZOOM_MAX - ZOOM_MIN)
        return self.near_opacity + (self.far_opacity - self.near_opacity) * t

    def build(self, lat_step, lon_step, tile_radius, lat_limit=80.0, zoom_level=ZOOM_MIN):
        """Create one tile per (lat, lon) grid point, both ends inclusive."""
        opacity = self.opacity_for_zoom(zoom_level)
        tiles = []
        for lat in _inclusive_steps(-lat_limit, lat_limit, lat_step):
            for lon in _inclusive_steps(-180.0, 180.0, lon_step):
                coord = GeoCoordinate(lat, lon)
                pos = to_cartesian(coord, tile_radius)
                node = Object3D("tile")
                node.position = pos.as_array()
                node.rotation = orient_tangent(node.position)
                tiles.append(Tile(coord, tile_radius, opacity, node))
        self.tiles = tiles
        log.info("Built %d tiles (%.1f x %.1f deg, r=%.3f)", len(tiles), lat_step, lon_step, tile_radius)
        return tiles

    def build_preset(self, density, tile_radius, zoom_level=ZOOM_MIN):
        if density not in DENSITY_PRESETS:
            raise ValueError(f"unknown tile density: {density!r}")
        lat_step, lon_step, lat_limit = DENSITY_PRESETS[density]
        return self.build(lat_step, lon_step, tile_radius, lat_limit=lat_limit, zoom_level=zoom_level)

    def refresh_opacity(self, zoom_level):
        opacity = self.opacity_for_zoom(zoom_level)
        for tile in self.tiles:
            tile.opacity = opacity
        return opacity

    def attach(self, globe):
        self._globe = globe
        for tile in self.tiles:
            globe.add(tile.node)

    def detach(self):
        if self._globe is None:
            return
        for tile in self.tiles:
            self._globe.remove(tile.node)
        self._globe = None

    def corner_offsets(self):
        """Tile outline corners in tile-local space (a square in the local XZ plane)."""
        h = self.tile_size / 2.0
        return np.array([
            [-h, 0.0, -h],
            [h, 0.0, -h],
            [h, 0.0, h],
            [-h, 0.0, h],
        ])
