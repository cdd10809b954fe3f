"""
Coordinate projection between geographic, Cartesian and screen space.
Longitude 0 on the equator maps to +X, longitude -90 to +Z; latitude +90 is the +Y pole.
"""

import math
from dataclasses import dataclass

import numpy as np

DEG2RAD = math.pi / 180.0


@dataclass(frozen=True)
class GeoCoordinate:
    latitude: float
    longitude: float

    def __post_init__(self):
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"latitude out of range: {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"longitude out of range: {self.longitude}")


@dataclass(frozen=True)
class CartesianPosition:
    x: float
    y: float
    z: float

    def as_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=np.float64)


def to_cartesian(coord: GeoCoordinate, radius: float) -> CartesianPosition:
    """Place a lat/lon on a sphere of the given radius."""
    phi = (90.0 - coord.latitude) * DEG2RAD
    theta = (coord.longitude + 180.0) * DEG2RAD
    return CartesianPosition(
        -radius * math.sin(phi) * math.cos(theta),
        radius * math.cos(phi),
        radius * math.sin(phi) * math.sin(theta),
    )


def to_cartesian_array(lats, lons, radius=1.0):
    """Vectorized to_cartesian. Returns an (N, 3) float64 array."""
    phi = (90.0 - np.asarray(lats, dtype=np.float64)) * DEG2RAD
    theta = (np.asarray(lons, dtype=np.float64) + 180.0) * DEG2RAD
    sin_phi = np.sin(phi)
    return np.column_stack([
        -radius * sin_phi * np.cos(theta),
        radius * np.cos(phi),
        radius * sin_phi * np.sin(theta),
    ])


def map_point(coord: GeoCoordinate) -> CartesianPosition:
    """Point on the flat equirectangular map plane (z = 0)."""
    return CartesianPosition(coord.longitude / 180.0 * 2.0, -coord.latitude / 90.0, 0.0)


def rotation_x(angle: float) -> np.ndarray:
    c, s = math.cos(angle), math.sin(angle)
    return np.array([
        [1.0, 0.0, 0.0],
        [0.0, c, -s],
        [0.0, s, c],
    ])


def rotation_y(angle: float) -> np.ndarray:
    c, s = math.cos(angle), math.sin(angle)
    return np.array([
        [c, 0.0, s],
        [0.0, 1.0, 0.0],
        [-s, 0.0, c],
    ])


def look_rotation(forward, up=(0.0, 1.0, 0.0)) -> np.ndarray:
    """Rotation whose local +Z axis is `forward`.

    When `forward` is parallel to `up` the forward vector is nudged off the
    up axis before building the basis, so poles still get a valid frame.
    """
    z = np.asarray(forward, dtype=np.float64)
    up = np.asarray(up, dtype=np.float64)
    norm = np.linalg.norm(z)
    if norm == 0.0:
        z = np.array([0.0, 0.0, 1.0])
    else:
        z = z / norm

    x = np.cross(up, z)
    if np.linalg.norm(x) == 0.0:
        z = z.copy()
        if abs(up[2]) == 1.0:
            z[0] += 0.0001
        else:
            z[2] += 0.0001
        z = z / np.linalg.norm(z)
        x = np.cross(up, z)

    x = x / np.linalg.norm(x)
    y = np.cross(z, x)
    return np.column_stack([x, y, z])


def orient_tangent(position) -> np.ndarray:
    """Orientation for a flat element lying tangent to the sphere at `position`.

    The forward axis is first pointed at the sphere center, then the element
    is turned a quarter turn about its local X axis so its face lies along
    the surface instead of facing the center edge-on.
    """
    if isinstance(position, CartesianPosition):
        position = position.as_array()
    toward_center = -np.asarray(position, dtype=np.float64)
    return look_rotation(toward_center) @ rotation_x(math.pi / 2)


def to_screen(position, camera, width: float, height: float):
    """Project a world-space point to pixel coordinates.

    Returns (x, y) with y growing downward, or None when the point is behind
    the camera or past the far plane.
    """
    if isinstance(position, CartesianPosition):
        position = position.as_array()
    ndc = camera.project(position)
    if ndc[2] > 1.0:
        return None
    px = (ndc[0] * 0.5 + 0.5) * width
    py = (-ndc[1] * 0.5 + 0.5) * height
    return float(px), float(py)


def project_array(points: np.ndarray, camera, width: float, height: float):
    """Vectorized to_screen for an (N, 3) array.

    Returns (px, py, in_front) where in_front is False wherever to_screen
    would have returned None.
    """
    ndc = camera.project_many(points)
    px = (ndc[:, 0] * 0.5 + 0.5) * width
    py = (-ndc[:, 1] * 0.5 + 0.5) * height
    in_front = ndc[:, 2] <= 1.0
    return px, py, in_front
