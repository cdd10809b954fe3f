"""Camera controller: zoom, orbit, reset and viewport handling."""

import logging
import math
from dataclasses import dataclass

import numpy as np

from .view_state import DEFAULT_ZOOM

log = logging.getLogger("e2v.camera")

TILE_INSPECT_ZOOM = 1.5
MAP_CAMERA_DISTANCE = 3.0
POLAR_EPSILON = 0.01


@dataclass(frozen=True)
class CameraState:
    distance: float
    orientation: np.ndarray


class CameraController:
    """Drives the camera from the view state.

    In Globe mode the camera orbits the origin at distance == zoom level.
    In Map mode it sits front-on at a fixed pose and orbit is refused.
    """

    def __init__(self, view, camera, tiles=None, on_labels_dirty=None):
        self.view = view
        self.camera = camera
        self.tiles = tiles
        self.on_labels_dirty = on_labels_dirty
        # Spherical orbit angles; azimuth 0 / polar pi/2 puts the camera on +Z.
        self.azimuth = 0.0
        self.polar = math.pi / 2
        self.apply_globe_pose()

    @property
    def zoom_level(self) -> float:
        return self.view.state.zoom_level

    @property
    def camera_state(self) -> CameraState:
        return CameraState(float(np.linalg.norm(self.camera.position)), self.camera.rotation.copy())

    def _orbit_direction(self) -> np.ndarray:
        sin_p = math.sin(self.polar)
        return np.array([
            sin_p * math.sin(self.azimuth),
            math.cos(self.polar),
            sin_p * math.cos(self.azimuth),
        ])

    def _labels_dirty(self):
        if self.view.is_map and self.on_labels_dirty is not None:
            self.on_labels_dirty()

    def _place_camera(self, zoom, previous):
        if self.view.is_map:
            # Map framing starts at MAP_CAMERA_DISTANCE and scales by the zoom ratio.
            distance = float(np.linalg.norm(self.camera.position)) * zoom / previous
            self.camera.position = np.array([0.0, 0.0, distance])
        else:
            self.camera.position = self._orbit_direction() * zoom
        self.camera.look_at((0.0, 0.0, 0.0))

    def _apply_zoom(self, zoom):
        previous = self.zoom_level
        zoom = self.view.set_zoom(zoom)
        self._place_camera(zoom, previous)
        if self.tiles is not None:
            self.tiles.refresh_opacity(zoom)
        self._labels_dirty()
        log.debug("Zoom %.3f", zoom)
        return zoom

    def adjust_zoom(self, factor: float) -> float:
        """Multiply the zoom by `factor`, clamped to [1, 5]. A NaN factor leaves zoom unchanged."""
        zoom = self.zoom_level * float(factor)
        if math.isnan(zoom):
            log.debug("Ignoring zoom factor %r", factor)
            zoom = self.zoom_level
        return self._apply_zoom(zoom)

    def zoom_to_tiles(self) -> float:
        return self._apply_zoom(TILE_INSPECT_ZOOM)

    def reset_view(self):
        self.view.set_zoom(DEFAULT_ZOOM)
        self.view.globe.azimuth = 0.0
        if self.tiles is not None:
            self.tiles.refresh_opacity(DEFAULT_ZOOM)
        if not self.view.is_map:
            self.azimuth = 0.0
            self.polar = math.pi / 2
            self.apply_globe_pose()
        log.info("View reset")

    def apply_globe_pose(self):
        direction = self._orbit_direction()
        self.camera.position = direction * self.zoom_level
        self.camera.look_at((0.0, 0.0, 0.0))

    def apply_map_pose(self):
        self.camera.position = np.array([0.0, 0.0, MAP_CAMERA_DISTANCE])
        self.camera.look_at((0.0, 0.0, 0.0))

    def orbit(self, d_azimuth: float, d_polar: float) -> bool:
        if not self.view.orbit_enabled:
            return False
        self.azimuth += d_azimuth
        self.polar = min(max(self.polar + d_polar, POLAR_EPSILON), math.pi - POLAR_EPSILON)
        self.apply_globe_pose()
        return True

    def on_viewport_resize(self, width, height):
        if width <= 0 or height <= 0:
            log.debug("Ignoring degenerate viewport %sx%s", width, height)
            return
        self.camera.aspect = width / height
        self.camera.update_projection_matrix()
        self._labels_dirty()
