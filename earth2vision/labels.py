"""Screen-space placement of geo-anchored labels and markers."""

from dataclasses import dataclass

import numpy as np

from .projection import GeoCoordinate, map_point, orient_tangent, to_cartesian, to_screen
from .scene import Object3D
from .view_state import ViewMode

MARKER_RADIUS = 1.02


@dataclass
class Label:
    name: str
    coordinate: GeoCoordinate
    screen_position: tuple | None = None
    visible: bool = False


@dataclass
class Marker:
    label: Label
    node: Object3D


def _on_viewport(pos, width, height):
    return pos is not None and 0.0 <= pos[0] <= width and 0.0 <= pos[1] <= height


def _faces_camera(world_point, camera_position):
    # The surface normal of a point on a sphere centered at the origin is the point itself.
    return float(np.dot(world_point, camera_position - world_point)) > 0.0


class LabelPlacer:
    """Projects labeled points into pixel space.

    Map mode labels are rebuilt from scratch on every place() call.
    Globe markers live on the globe and their labels are updated in place.
    """

    def __init__(self, marker_radius=MARKER_RADIUS):
        self.marker_radius = marker_radius
        self.labels = []
        self.markers = []

    def clear_labels(self):
        self.labels = []

    def _project(self, name, coord, camera, width, height, mode, globe):
        if mode is ViewMode.MAP:
            world = map_point(coord).as_array()
            pos = to_screen(world, camera, width, height)
            visible = _on_viewport(pos, width, height)
        else:
            local = to_cartesian(coord, self.marker_radius).as_array()
            world = globe.local_to_world(local) if globe is not None else local
            pos = to_screen(world, camera, width, height)
            visible = _on_viewport(pos, width, height) and _faces_camera(world, camera.world_position())
        return Label(name, coord, pos, visible)

    def place(self, sources, camera, width, height, mode=ViewMode.MAP, globe=None):
        """Project (name, coordinate) pairs and return fresh Label objects."""
        labels = [self._project(name, coord, camera, width, height, mode, globe)
                  for name, coord in sources]
        if mode is ViewMode.MAP:
            self.labels = labels
        return labels

    def add_marker(self, name, coord, globe) -> Marker:
        node = Object3D(f"marker:{name}")
        node.position = to_cartesian(coord, self.marker_radius).as_array()
        node.rotation = orient_tangent(node.position)
        globe.add(node)
        marker = Marker(Label(name, coord), node)
        self.markers.append(marker)
        return marker

    def remove_markers(self):
        for marker in self.markers:
            if marker.node.parent is not None:
                marker.node.parent.remove(marker.node)
        self.markers = []

    def update_markers(self, camera, width, height):
        cam_pos = camera.world_position()
        for marker in self.markers:
            world = marker.node.world_position()
            pos = to_screen(world, camera, width, height)
            label = marker.label
            label.screen_position = pos
            label.visible = _on_viewport(pos, width, height) and _faces_camera(world, cam_pos)
        return [m.label for m in self.markers]
