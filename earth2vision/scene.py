"""Minimal scene graph: transformable objects, a rotating globe and a perspective camera."""

import math

import numpy as np

from .projection import look_rotation, rotation_y


def perspective(fovy: float, aspect: float, z_near: float, z_far: float) -> np.ndarray:
    f = 1.0 / math.tan(fovy / 2.0)
    return np.array([
        [f / aspect, 0.0, 0.0, 0.0],
        [0.0, f, 0.0, 0.0],
        [0.0, 0.0, (z_far + z_near) / (z_near - z_far), (2.0 * z_far * z_near) / (z_near - z_far)],
        [0.0, 0.0, -1.0, 0.0],
    ])


def compose(position, rotation) -> np.ndarray:
    m = np.identity(4)
    m[:3, :3] = rotation
    m[:3, 3] = position
    return m


class Object3D:
    """Node with a local position/rotation and parent-relative world transform."""

    def __init__(self, name=""):
        self.name = name
        self.position = np.zeros(3)
        self.rotation = np.identity(3)
        self.parent = None
        self.children = []
        self.visible = True
        self.user_data = {}

    def add(self, child):
        if child.parent is not None:
            child.parent.remove(child)
        child.parent = self
        self.children.append(child)
        return child

    def remove(self, child):
        if child in self.children:
            self.children.remove(child)
            child.parent = None

    def clear(self):
        for child in list(self.children):
            self.remove(child)

    def look_at(self, target):
        """Point the local +Z axis at `target` (world space, unparented use)."""
        self.rotation = look_rotation(np.asarray(target, dtype=np.float64) - self.position)

    def rotate_x(self, angle):
        c, s = math.cos(angle), math.sin(angle)
        self.rotation = self.rotation @ np.array([
            [1.0, 0.0, 0.0],
            [0.0, c, -s],
            [0.0, s, c],
        ])

    @property
    def matrix(self) -> np.ndarray:
        return compose(self.position, self.rotation)

    @property
    def world_matrix(self) -> np.ndarray:
        if self.parent is None:
            return self.matrix
        return self.parent.world_matrix @ self.matrix

    def world_position(self) -> np.ndarray:
        return self.world_matrix[:3, 3].copy()

    def local_to_world(self, points) -> np.ndarray:
        """Transform an (N, 3) array (or one point) from local into world space."""
        pts = np.asarray(points, dtype=np.float64)
        m = self.world_matrix
        single = pts.ndim == 1
        pts = np.atleast_2d(pts)
        out = pts @ m[:3, :3].T + m[:3, 3]
        return out[0] if single else out

    def traverse(self):
        yield self
        for child in self.children:
            yield from child.traverse()


class Globe(Object3D):
    """Sphere node spun about its Y axis. Children inherit the spin."""

    def __init__(self, radius=1.0, name="globe"):
        super().__init__(name)
        self.radius = radius
        self._azimuth = 0.0

    @property
    def azimuth(self) -> float:
        return self._azimuth

    @azimuth.setter
    def azimuth(self, value):
        self._azimuth = float(value)
        self.rotation = rotation_y(self._azimuth)


class PerspectiveCamera(Object3D):

    def __init__(self, fov=75.0, aspect=1.0, near=0.1, far=1000.0):
        super().__init__("camera")
        self.fov = fov
        self.aspect = aspect
        self.near = near
        self.far = far
        self.projection_matrix = None
        self.update_projection_matrix()

    def update_projection_matrix(self):
        self.projection_matrix = perspective(math.radians(self.fov), self.aspect, self.near, self.far)

    def look_at(self, target):
        # Cameras look down their local -Z axis.
        self.rotation = look_rotation(self.position - np.asarray(target, dtype=np.float64))

    @property
    def view_matrix(self) -> np.ndarray:
        world = self.world_matrix
        rot = world[:3, :3]
        view = np.identity(4)
        view[:3, :3] = rot.T
        view[:3, 3] = -rot.T @ world[:3, 3]
        return view

    def project_many(self, points) -> np.ndarray:
        """Project (N, 3) world points to normalized device coordinates."""
        pts = np.atleast_2d(np.asarray(points, dtype=np.float64))
        clip_from_world = self.projection_matrix @ self.view_matrix
        homo = np.column_stack([pts, np.ones(len(pts))])
        clip = homo @ clip_from_world.T
        w = clip[:, 3:4]
        with np.errstate(divide="ignore", invalid="ignore"):
            ndc = clip[:, :3] / w
        # Points on the camera plane cannot be projected; push them past the far plane.
        degenerate = np.abs(w[:, 0]) < 1e-12
        ndc[degenerate] = (0.0, 0.0, np.inf)
        return ndc

    def project(self, point) -> np.ndarray:
        return self.project_many(point)[0]


class Scene(Object3D):

    def __init__(self):
        super().__init__("scene")
