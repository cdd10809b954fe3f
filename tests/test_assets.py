from types import SimpleNamespace

import numpy as np
import pytest
from shapely.geometry import MultiLineString, Point, Polygon

from earth2vision.assets import (
    default_outlines,
    extract_outlines,
    load_outlines,
    load_places,
    places_from_locations,
)
from earth2vision.config_manager import DEFAULT_LOCATIONS


def test_default_outlines_are_a_graticule():
    outlines = default_outlines(step=30, samples=13)
    # 5 parallels and 12 meridians
    assert len(outlines) == 17
    for line in outlines:
        assert line.shape == (13, 2)
        assert np.all(np.abs(line[:, 0]) <= 180.0)
        assert np.all(np.abs(line[:, 1]) <= 90.0)


def test_extract_outlines_handles_geometry_kinds():
    square = Polygon([(0, 0), (10, 0), (10, 10), (0, 10)])
    lines = MultiLineString([[(0, 0), (1, 1)], [(2, 2), (3, 3), (4, 4)]])
    gdf = SimpleNamespace(geometry=[square, None, Point(1, 1), lines])
    outlines = extract_outlines(gdf)
    assert [o.shape for o in outlines] == [(5, 2), (2, 2), (3, 2)]


def test_missing_outline_file_falls_back(tmp_path):
    outlines = load_outlines(str(tmp_path / "nope.shp"))
    assert len(outlines) == len(default_outlines())


def test_unreadable_outline_file_falls_back(tmp_path):
    bad = tmp_path / "bad.shp"
    bad.write_bytes(b"not a shapefile")
    assert len(load_outlines(str(bad))) == len(default_outlines())


def test_places_from_locations_skips_invalid():
    places = places_from_locations([
        {"name": "Ok", "lat": 10.0, "lon": 20.0},
        {"name": "Bad", "lat": 120.0, "lon": 0.0},
    ])
    assert [name for name, _ in places] == ["Ok"]
    assert places[0][1].latitude == 10.0


def test_missing_places_file_uses_locations(tmp_path):
    places = load_places(str(tmp_path / "nope.shp"), DEFAULT_LOCATIONS)
    assert [name for name, _ in places] == [loc["name"] for loc in DEFAULT_LOCATIONS]


def test_shapefiles_round_trip(tmp_path):
    gpd = pytest.importorskip("geopandas")
    pytest.importorskip("pyogrio")

    coast = tmp_path / "coast.shp"
    gpd.GeoDataFrame(
        {"id": [1]}, geometry=[Polygon([(0, 0), (10, 0), (10, 10), (0, 10)])], crs="EPSG:4326",
    ).to_file(coast)
    outlines = load_outlines(str(coast))
    assert len(outlines) == 1
    assert outlines[0].shape[1] == 2

    towns = tmp_path / "towns.shp"
    gpd.GeoDataFrame(
        {"NAME": ["Minor", "Capital", "Port"], "SCALERANK": [3, 0, 1]},
        geometry=[Point(5, 5), Point(-70, -30), Point(100, 10)],
        crs="EPSG:4326",
    ).to_file(towns)
    places = load_places(str(towns), DEFAULT_LOCATIONS, limit=2)
    assert [name for name, _ in places] == ["Capital", "Port"]
    assert places[0][1].latitude == pytest.approx(-30.0)
    assert places[0][1].longitude == pytest.approx(-70.0)
