import math

import numpy as np
import pytest

from earth2vision.projection import (
    GeoCoordinate,
    map_point,
    orient_tangent,
    to_cartesian,
    to_cartesian_array,
    to_screen,
)
from earth2vision.scene import PerspectiveCamera


def _xyz(pos):
    return (pos.x, pos.y, pos.z)


def test_origin_meridian_equator_maps_to_positive_x():
    pos = to_cartesian(GeoCoordinate(0, 0), 1.0)
    assert _xyz(pos) == pytest.approx((1.0, 0.0, 0.0), abs=1e-12)


@pytest.mark.parametrize("lon", [-180, -90, 0, 45, 123.4, 180])
def test_north_pole_is_invariant_in_longitude(lon):
    pos = to_cartesian(GeoCoordinate(90, lon), 1.0)
    assert _xyz(pos) == pytest.approx((0.0, 1.0, 0.0), abs=1e-12)


def test_south_pole():
    pos = to_cartesian(GeoCoordinate(-90, 10), 2.0)
    assert _xyz(pos) == pytest.approx((0.0, -2.0, 0.0), abs=1e-12)


def test_minus_ninety_longitude_faces_positive_z():
    pos = to_cartesian(GeoCoordinate(0, -90), 1.0)
    assert _xyz(pos) == pytest.approx((0.0, 0.0, 1.0), abs=1e-12)


def test_radius_scales_position():
    coord = GeoCoordinate(33.0, -71.5)
    a = to_cartesian(coord, 1.0).as_array()
    b = to_cartesian(coord, 1.01).as_array()
    assert np.linalg.norm(b) == pytest.approx(1.01)
    assert b == pytest.approx(a * 1.01)


def test_array_form_matches_scalar_form():
    lats = np.array([-60.0, 0.0, 12.5, 89.0])
    lons = np.array([170.0, -45.0, 0.0, -179.0])
    arr = to_cartesian_array(lats, lons, 1.5)
    for i in range(len(lats)):
        expected = to_cartesian(GeoCoordinate(lats[i], lons[i]), 1.5).as_array()
        assert arr[i] == pytest.approx(expected)


@pytest.mark.parametrize("lat,lon", [(91, 0), (-90.5, 0), (0, 180.1), (0, -181)])
def test_out_of_range_coordinates_are_rejected(lat, lon):
    with pytest.raises(ValueError):
        GeoCoordinate(lat, lon)


def test_coordinates_are_immutable():
    coord = GeoCoordinate(10, 20)
    with pytest.raises(AttributeError):
        coord.latitude = 11


@pytest.mark.parametrize("lat,lon", [(0, 0), (45, 30), (-30, -120), (80, 179)])
def test_orient_tangent_lays_flat_on_surface(lat, lon):
    pos = to_cartesian(GeoCoordinate(lat, lon), 1.01).as_array()
    rot = orient_tangent(pos)
    assert rot.T @ rot == pytest.approx(np.identity(3), abs=1e-9)
    assert np.linalg.det(rot) == pytest.approx(1.0)
    # The element's face normal (local Y) points at the sphere center.
    assert rot[:, 1] == pytest.approx(-pos / np.linalg.norm(pos), abs=1e-9)


def test_orient_tangent_is_deterministic():
    pos = to_cartesian(GeoCoordinate(12, 34), 1.01)
    assert np.array_equal(orient_tangent(pos), orient_tangent(pos))


def test_orient_tangent_at_pole_is_valid():
    rot = orient_tangent(np.array([0.0, 1.01, 0.0]))
    assert rot.T @ rot == pytest.approx(np.identity(3), abs=1e-9)
    assert rot[:, 1] == pytest.approx((0.0, -1.0, 0.0), abs=1e-3)


@pytest.fixture
def front_camera():
    camera = PerspectiveCamera(75.0, 2.0, 0.1, 1000.0)
    camera.position = np.array([0.0, 0.0, 2.5])
    camera.look_at((0.0, 0.0, 0.0))
    return camera


def test_to_screen_centers_the_look_target(front_camera):
    assert to_screen(np.zeros(3), front_camera, 200, 100) == pytest.approx((100.0, 50.0))


def test_to_screen_flips_y(front_camera):
    x, y = to_screen(np.array([0.5, 0.5, 0.0]), front_camera, 200, 100)
    assert x > 100.0
    assert y < 50.0


def test_to_screen_behind_camera_is_none(front_camera):
    assert to_screen(np.array([0.0, 0.0, 5.0]), front_camera, 200, 100) is None


class _FixedNdcCamera:
    def __init__(self, ndc):
        self.ndc = np.asarray(ndc, dtype=float)

    def project(self, point):
        return self.ndc


@pytest.mark.parametrize("x,y", [(0, 0), (0.5, -0.5), (-1, 1), (3, 3)])
def test_depth_past_one_is_not_visible_regardless_of_xy(x, y):
    assert to_screen(np.zeros(3), _FixedNdcCamera((x, y, 1.0001)), 640, 480) is None


def test_depth_of_exactly_one_is_kept():
    assert to_screen(np.zeros(3), _FixedNdcCamera((1.0, -1.0, 1.0)), 640, 480) == (640.0, 480.0)


def test_map_point_is_linear_equirectangular():
    p = map_point(GeoCoordinate(45, 90))
    assert (p.x, p.y, p.z) == pytest.approx((1.0, -0.5, 0.0))
    corner = map_point(GeoCoordinate(-90, -180))
    assert (corner.x, corner.y) == pytest.approx((-2.0, 1.0))


def test_projection_constant_matches_math():
    # phi/theta use degrees -> radians
    pos = to_cartesian(GeoCoordinate(30, 0), 1.0)
    assert pos.y == pytest.approx(math.cos(math.radians(60)))
