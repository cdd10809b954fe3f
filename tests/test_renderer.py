import numpy as np
import pytest

from earth2vision.assets import default_outlines
from earth2vision.renderer import (
    BRAILLE_BASE,
    draw_polyline,
    draw_segments,
    label_overlays,
    limb_points,
    pixels_to_braille,
    render_globe_layers,
    render_map_layers,
    render_viewer,
    _tile_color,
)
from earth2vision.labels import Label
from earth2vision.projection import GeoCoordinate
from earth2vision.viewer import GlobeViewer


def test_horizontal_segment():
    grid = np.zeros((8, 10), dtype=np.uint8)
    draw_segments(grid, [0], [2], [9], [2])
    assert grid[2].tolist() == [1] * 10
    assert grid.sum() == 10


def test_segment_is_clipped_to_grid():
    grid = np.zeros((4, 10), dtype=np.uint8)
    draw_segments(grid, [-5], [1], [15], [1])
    assert grid[1].all()
    assert grid.sum() == 10


def test_non_finite_segments_are_dropped():
    grid = np.zeros((4, 4), dtype=np.uint8)
    draw_segments(grid, [np.nan, 0], [0, 0], [3, 3], [0, 3])
    assert grid.trace() == 4
    assert grid.sum() == 4


def test_per_segment_values():
    grid = np.zeros((4, 4), dtype=np.float32)
    draw_segments(grid, [0, 0], [0, 3], [3, 3], [0, 3], value=np.array([0.2, 0.7]))
    assert grid[0, 0] == pytest.approx(0.2)
    assert grid[3, 3] == pytest.approx(0.7)


def test_polyline_skips_invalid_points():
    grid = np.zeros((4, 8), dtype=np.uint8)
    draw_polyline(grid, [0, 3, 7], [0, 0, 0], [True, True, False])
    assert grid[0, :4].all()
    assert not grid[0, 4:].any()


def test_limb_is_tangent_circle():
    cam = np.array([0.0, 0.0, 2.5])
    pts = limb_points(cam, samples=32)
    assert pts.shape == (32, 3)
    assert np.linalg.norm(pts, axis=1) == pytest.approx(np.ones(32))
    assert np.einsum("ij,ij->i", pts, cam - pts) == pytest.approx(np.zeros(32), abs=1e-12)


def test_no_limb_from_inside_the_sphere():
    assert limb_points(np.array([0.0, 0.0, 0.5])).shape == (0, 3)


def test_full_cell_is_all_dots():
    rows = pixels_to_braille([(np.ones((4, 2), dtype=np.uint8), "white")])
    assert [r.plain for r in rows] == [chr(BRAILLE_BASE + 0xFF)]


def test_single_dot_weights():
    grid = np.zeros((4, 2), dtype=np.uint8)
    grid[0, 0] = 1
    assert pixels_to_braille([(grid, "white")])[0].plain == chr(BRAILLE_BASE + 0x01)
    grid[:] = 0
    grid[3, 1] = 1
    assert pixels_to_braille([(grid, "white")])[0].plain == chr(BRAILLE_BASE + 0x80)


def test_grid_is_padded_to_whole_cells():
    rows = pixels_to_braille([(np.zeros((5, 3), dtype=np.uint8), "white")])
    assert len(rows) == 2
    assert all(len(r.plain) == 2 for r in rows)


def test_layers_are_merged():
    a = np.zeros((4, 2), dtype=np.uint8)
    b = np.zeros((4, 2), dtype=np.uint8)
    a[0, 0] = 1
    b[0, 1] = 1
    (row,) = pixels_to_braille([(a, "yellow"), (b, "white")])
    assert row.plain == chr(BRAILLE_BASE + 0x01 + 0x08)
    assert row.spans[0].style == "yellow"


def test_label_overlay_replaces_cells():
    rows = pixels_to_braille([(np.zeros((8, 20), dtype=np.uint8), "white")],
                             labels=[(1, 0, "Hi"), (9, 1, "Clipped"), (0, 5, "Gone")])
    assert rows[0].plain[1:3] == "Hi"
    assert rows[1].plain[9] == "C"
    assert len(rows[1].plain) == 10


def test_label_overlays_from_pixels():
    labels = [
        Label("A", GeoCoordinate(0, 0), (10.0, 9.0), True),
        Label("B", GeoCoordinate(0, 0), (10.0, 9.0), False),
        Label("C", GeoCoordinate(0, 0), None, True),
    ]
    assert label_overlays(labels) == [(6, 2, "A")]


def test_tile_color_scales_with_alpha():
    assert _tile_color(0.0) == "#000000"
    assert _tile_color(1.0) == "#00ff88"
    assert _tile_color(0.1) < _tile_color(0.3)


@pytest.fixture
def small_viewer(places):
    return GlobeViewer(outlines=default_outlines(), places=places, width=40, height=24)


def test_globe_layers(small_viewer):
    small_viewer.frame()
    layers = render_globe_layers(small_viewer)
    assert layers["limb"].any()
    assert layers["outlines"].any()
    assert layers["tiles"].max() == pytest.approx(
        small_viewer.tiles.opacity_for_zoom(small_viewer.state.zoom_level))


def test_map_layers(small_viewer):
    small_viewer.toggle_mode()
    layers = render_map_layers(small_viewer)
    assert layers["frame"].any()
    assert layers["outlines"].any()


@pytest.mark.parametrize("map_mode", [False, True])
def test_render_viewer_dimensions(small_viewer, map_mode):
    if map_mode:
        small_viewer.toggle_mode()
    small_viewer.frame()
    rows = render_viewer(small_viewer)
    assert len(rows) == 6
    assert all(len(r.plain) == 20 for r in rows)
