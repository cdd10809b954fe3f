"""
Asset loading for the globe: coastline outlines and labeled places.
Missing or unreadable files fall back to built-in defaults so startup
never aborts.
"""

import logging
import os
os.environ.setdefault('SHAPE_RESTORE_SHX', 'YES')

import numpy as np

from .projection import GeoCoordinate

log = logging.getLogger("e2v.assets")


def extract_outlines(gdf):
    """Extract (N, 2) lon/lat polylines from a GeoDataFrame's geometries."""
    outlines = []

    def extract_coords(geom):
        t = geom.geom_type
        if t == 'Polygon':
            outlines.append(np.array(geom.exterior.coords, dtype=np.float64)[:, :2])
        elif t == 'MultiPolygon':
            for poly in geom.geoms:
                extract_coords(poly)
        elif t == 'LineString':
            outlines.append(np.array(geom.coords, dtype=np.float64)[:, :2])
        elif t == 'MultiLineString':
            for line in geom.geoms:
                outlines.append(np.array(line.coords, dtype=np.float64)[:, :2])

    for geom in gdf.geometry:
        if geom is not None and not geom.is_empty:
            extract_coords(geom)

    return outlines


def default_outlines(step=30.0, samples=73):
    """Graticule used when no coastline data is available."""
    outlines = []
    lons = np.linspace(-180.0, 180.0, samples)
    for lat in np.arange(-90.0 + step, 90.0, step):
        outlines.append(np.column_stack([lons, np.full_like(lons, lat)]))
    lats = np.linspace(-90.0, 90.0, samples)
    for lon in np.arange(-180.0, 180.0, step):
        outlines.append(np.column_stack([np.full_like(lats, lon), lats]))
    return outlines


def load_outlines(shapefile_path):
    """Load coastline/country outlines, substituting the graticule on failure."""
    if not shapefile_path or not os.path.exists(shapefile_path):
        log.warning("Outline file %r not found, using graticule", shapefile_path)
        return default_outlines()

    try:
        import geopandas as gpd
        gdf = gpd.read_file(shapefile_path)
        outlines = extract_outlines(gdf)
    except Exception as e:
        log.warning("Could not read %s (%s), using graticule", shapefile_path, e)
        return default_outlines()
    del gdf

    if not outlines:
        log.warning("No outlines in %s, using graticule", shapefile_path)
        return default_outlines()
    log.info("Loaded %d outlines from %s", len(outlines), shapefile_path)
    return outlines


def places_from_locations(locations):
    """(name, GeoCoordinate) pairs from config location dicts."""
    places = []
    for loc in locations:
        try:
            places.append((loc["name"], GeoCoordinate(loc["lat"], loc["lon"])))
        except ValueError as e:
            log.warning("Skipping location %r: %s", loc.get("name"), e)
    return places


def load_places(places_path, fallback_locations, limit=40):
    """Load labeled places from a point shapefile, ranked by SCALERANK when present."""
    fallback = places_from_locations(fallback_locations)
    if not places_path or not os.path.exists(places_path):
        log.info("Places file %r not found, using configured locations", places_path)
        return fallback

    try:
        import geopandas as gpd
        gdf = gpd.read_file(places_path)
    except Exception as e:
        log.warning("Could not read %s (%s), using configured locations", places_path, e)
        return fallback

    name_col = None
    for col in ['NAME', 'name', 'NAME_EN', 'name_en', 'NAMEASCII']:
        if col in gdf.columns:
            name_col = col
            break
    if name_col is None:
        log.warning("No name column in %s, using configured locations", places_path)
        return fallback

    for rank_col in ['SCALERANK', 'scalerank']:
        if rank_col in gdf.columns:
            gdf = gdf.sort_values(rank_col, kind="stable")
            break

    places = []
    for _, row in gdf.iterrows():
        geom = row.geometry
        if geom is None or geom.geom_type != 'Point' or not row[name_col]:
            continue
        try:
            coord = GeoCoordinate(float(geom.y), float(geom.x))
        except ValueError:
            continue
        places.append((str(row[name_col]), coord))
        if len(places) >= limit:
            break

    del gdf
    return places or fallback
