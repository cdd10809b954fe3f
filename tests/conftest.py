import pytest

from earth2vision.assets import default_outlines, places_from_locations
from earth2vision.config_manager import DEFAULT_LOCATIONS
from earth2vision.scene import Globe, PerspectiveCamera
from earth2vision.tiles import TileGridGenerator
from earth2vision.view_state import ViewStateController
from earth2vision.camera import CameraController
from earth2vision.viewer import GlobeViewer


@pytest.fixture
def globe():
    return Globe(1.0)


@pytest.fixture
def view(globe):
    return ViewStateController(globe)


@pytest.fixture
def tiles(globe):
    grid = TileGridGenerator()
    grid.build(10, 10, 1.01, zoom_level=2.5)
    grid.attach(globe)
    return grid


@pytest.fixture
def camera():
    return PerspectiveCamera(75.0, 2.0, 0.1, 1000.0)


@pytest.fixture
def dirty_calls():
    return []


@pytest.fixture
def camera_controller(view, camera, tiles, dirty_calls):
    return CameraController(view, camera, tiles, on_labels_dirty=lambda: dirty_calls.append(1))


@pytest.fixture
def places():
    return places_from_locations(DEFAULT_LOCATIONS)


@pytest.fixture
def viewer(places):
    return GlobeViewer(outlines=default_outlines(), places=places, width=160, height=96)
