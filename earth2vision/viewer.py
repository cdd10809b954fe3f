"""GlobeViewer: wires the scene, controllers and label placement together."""

import logging

from .camera import CameraController
from .labels import LabelPlacer
from .scene import Globe, PerspectiveCamera, Scene
from .tiles import DENSITY_PRESETS, TileGridGenerator
from .view_state import ViewMode, ViewStateController

log = logging.getLogger("e2v.viewer")

DENSITY_ORDER = list(DENSITY_PRESETS)


class GlobeViewer:
    """Host-facing facade over the globe's interaction state.

    UI handlers call the operations below; the animation loop calls frame()
    once per refresh and then hands the viewer to the renderer.
    """

    def __init__(self, outlines=None, places=None, density="low", tile_radius=1.01,
                 tile_size=0.2, tile_opacity_near=0.35, tile_opacity_far=0.05,
                 rotation_speed=1.0, auto_rotate=True, map_mode=True,
                 rotation_increment=0.0005, width=160, height=96):
        self.outlines = outlines or []
        self.places = list(places or [])
        self.width = width
        self.height = height
        self.tile_radius = tile_radius
        self.density = density

        self.scene = Scene()
        self.globe = self.scene.add(Globe(1.0))
        self.camera = PerspectiveCamera(75.0, width / height, 0.1, 1000.0)

        self.view = ViewStateController(
            self.globe, auto_rotate=auto_rotate, rotation_speed=rotation_speed,
            base_increment=rotation_increment, map_mode_enabled=map_mode,
        )
        self.tiles = TileGridGenerator(tile_opacity_near, tile_opacity_far, tile_size)
        self.tiles.build_preset(density, tile_radius, zoom_level=self.view.state.zoom_level)
        self.tiles.attach(self.globe)

        self.labels = LabelPlacer()
        for name, coord in self.places:
            self.labels.add_marker(name, coord, self.globe)

        self._labels_dirty = False
        self.camera_controller = CameraController(
            self.view, self.camera, self.tiles, on_labels_dirty=self.invalidate_labels,
        )
        self.view.on_transition(self._on_view_transition)

    @classmethod
    def from_config(cls, config, outlines=None, places=None, width=160, height=96):
        opts = config.options
        return cls(
            outlines=outlines, places=places,
            density=opts["density"],
            tile_radius=opts["tile_radius"],
            tile_size=opts["tile_size"],
            tile_opacity_near=opts["tile_opacity_near"],
            tile_opacity_far=opts["tile_opacity_far"],
            rotation_speed=opts["rotation_speed"],
            auto_rotate=opts["auto_rotate"],
            map_mode=opts["map_mode"],
            rotation_increment=opts["rotation_increment"],
            width=width, height=height,
        )

    # --- State reactions ---

    def invalidate_labels(self):
        self._labels_dirty = True

    def _on_view_transition(self, event, state):
        if event != "mode":
            return
        if state.mode is ViewMode.MAP:
            self.camera_controller.apply_map_pose()
            self.invalidate_labels()
        else:
            self.camera_controller.apply_globe_pose()
            self.labels.clear_labels()
            self._labels_dirty = False

    # --- Host operations ---

    @property
    def state(self):
        return self.view.state

    @property
    def is_map(self) -> bool:
        return self.view.is_map

    def toggle_auto_rotate(self) -> bool:
        return self.view.toggle_auto_rotate()

    def toggle_mode(self) -> bool:
        return self.view.toggle_mode()

    def set_rotation_speed(self, value):
        self.view.set_rotation_speed(value)

    def adjust_zoom(self, factor):
        return self.camera_controller.adjust_zoom(factor)

    def zoom_to_tiles(self):
        return self.camera_controller.zoom_to_tiles()

    def reset_view(self):
        self.camera_controller.reset_view()

    def on_viewport_resize(self, width, height):
        if width <= 0 or height <= 0:
            return
        self.width = width
        self.height = height
        self.camera_controller.on_viewport_resize(width, height)

    def orbit(self, d_azimuth, d_polar) -> bool:
        return self.camera_controller.orbit(d_azimuth, d_polar)

    def on_drag_start(self):
        self.view.on_drag_start()

    def on_drag_end(self):
        self.view.on_drag_end()

    def set_density(self, density):
        if density not in DENSITY_PRESETS:
            raise ValueError(f"unknown tile density: {density!r}")
        self.tiles.detach()
        self.tiles.build_preset(density, self.tile_radius, zoom_level=self.view.state.zoom_level)
        self.tiles.attach(self.globe)
        self.density = density

    def cycle_density(self):
        idx = DENSITY_ORDER.index(self.density) if self.density in DENSITY_ORDER else -1
        self.set_density(DENSITY_ORDER[(idx + 1) % len(DENSITY_ORDER)])
        return self.density

    # --- Animation ---

    def frame(self):
        """Advance one animation frame and refresh label positions."""
        self.view.tick()
        if self.view.is_map:
            if self._labels_dirty:
                self.labels.place(self.places, self.camera, self.width, self.height, ViewMode.MAP)
                self._labels_dirty = False
        else:
            self.labels.update_markers(self.camera, self.width, self.height)

    def visible_labels(self):
        if self.view.is_map:
            current = self.labels.labels
        else:
            current = [m.label for m in self.labels.markers]
        return [label for label in current if label.visible]
