"""
Configuration manager.
Loads built-in defaults and overlays the user's TOML file on top. The file
is only ever read.
"""

import copy
import logging
import math
from pathlib import Path

import tomlkit

from .tiles import DENSITY_PRESETS

log = logging.getLogger("e2v.config")

CONFIG_FILE = Path.cwd() / "earth2vision.toml"

DEFAULT_OPTIONS = {
    "density": "low",
    "tile_radius": 1.01,
    "tile_size": 0.2,
    "tile_opacity_near": 0.35,
    "tile_opacity_far": 0.05,
    "rotation_speed": 1.0,
    "auto_rotate": True,
    "map_mode": True,
    "rotation_increment": 0.0005,
    "framerate": 30,
}

DEFAULT_ASSETS = {
    "coastlines": "files/ne_110m_admin_0_countries.shp",
    "places": "files/ne_110m_populated_places.shp",
}

DEFAULT_LOCATIONS = [
    {"name": "London", "lat": 51.5072, "lon": -0.1276},
    {"name": "New York", "lat": 40.7128, "lon": -74.006},
    {"name": "Tokyo", "lat": 35.6762, "lon": 139.6503},
    {"name": "Sydney", "lat": -33.8688, "lon": 151.2093},
    {"name": "Sao Paulo", "lat": -23.5505, "lon": -46.6333},
    {"name": "Cairo", "lat": 30.0444, "lon": 31.2357},
    {"name": "Mumbai", "lat": 19.076, "lon": 72.8777},
]


def _positive(v):
    return math.isfinite(v) and v > 0


def _non_negative(v):
    return math.isfinite(v) and v >= 0


def _unit(v):
    return 0.0 <= v <= 1.0


# Range checks for numeric options; values failing them are rejected like type errors.
OPTION_CHECKS = {
    "tile_radius": (_positive, "a positive number"),
    "tile_size": (_positive, "a positive number"),
    "tile_opacity_near": (_unit, "between 0 and 1"),
    "tile_opacity_far": (_unit, "between 0 and 1"),
    "rotation_speed": (_non_negative, "a finite number >= 0"),
    "rotation_increment": (_non_negative, "a finite number >= 0"),
    "framerate": (_positive, "at least 1"),
}


def _coerce(key, value, default):
    """Convert a TOML value to the type of its default, or raise ValueError."""
    if isinstance(default, bool):
        if not isinstance(value, bool):
            raise ValueError(f"{key} must be true or false")
        return value
    if isinstance(default, int):
        value = int(value)
    elif isinstance(default, float):
        value = float(value)
    else:
        return str(value)
    check, expected = OPTION_CHECKS.get(key, (None, None))
    if check is not None and not check(value):
        raise ValueError(f"{key} must be {expected}, got {value}")
    return value


class ConfigManager:

    def __init__(self, path=None):
        self.path = Path(path) if path is not None else CONFIG_FILE
        self._options = copy.deepcopy(DEFAULT_OPTIONS)
        self._assets = copy.deepcopy(DEFAULT_ASSETS)
        self._locations = copy.deepcopy(DEFAULT_LOCATIONS)
        self._load()

    # --- Loading ---

    def _load(self):
        if not self.path.exists():
            log.info("No config at %s, using defaults", self.path)
            return

        try:
            raw = self.path.read_text(encoding="utf-8")
            doc = tomlkit.parse(raw).unwrap()
        except Exception as e:
            log.warning("Config load error (%s): %s", self.path, e)
            return

        self._apply_toml(doc)

    def _apply_toml(self, doc):
        if "options" in doc:
            for key, val in doc["options"].items():
                if key not in self._options:
                    log.warning("Unknown option %r ignored", key)
                    continue
                try:
                    self._options[key] = _coerce(key, val, DEFAULT_OPTIONS[key])
                except (TypeError, ValueError, OverflowError) as e:
                    log.warning("Invalid value for %s: %s", key, e)

        if self._options["density"] not in DENSITY_PRESETS:
            log.warning("Unknown density %r, using %r", self._options["density"], DEFAULT_OPTIONS["density"])
            self._options["density"] = DEFAULT_OPTIONS["density"]

        if self._options["tile_opacity_near"] < self._options["tile_opacity_far"]:
            log.warning("tile_opacity_near %s is below tile_opacity_far %s, using defaults",
                        self._options["tile_opacity_near"], self._options["tile_opacity_far"])
            self._options["tile_opacity_near"] = DEFAULT_OPTIONS["tile_opacity_near"]
            self._options["tile_opacity_far"] = DEFAULT_OPTIONS["tile_opacity_far"]

        if "assets" in doc:
            for key, val in doc["assets"].items():
                if key in self._assets:
                    self._assets[key] = str(val)

        if "locations" in doc:
            raw_locations = doc["locations"]
            locations = []
            if isinstance(raw_locations, list):
                for entry in raw_locations:
                    if not (isinstance(entry, dict) and "name" in entry and "lat" in entry and "lon" in entry):
                        log.warning("Skipping malformed location %r", entry)
                        continue
                    try:
                        locations.append({
                            "name": str(entry["name"]),
                            "lat": float(entry["lat"]),
                            "lon": float(entry["lon"]),
                        })
                    except (TypeError, ValueError) as e:
                        log.warning("Skipping location %r: %s", entry.get("name"), e)
            self._locations = locations

    # --- Read API ---

    @property
    def options(self):
        return self._options

    def get_option(self, key: str):
        return self._options.get(key)

    def set_option(self, key: str, value):
        """Override an option for this session (e.g. from the command line)."""
        if key not in self._options:
            raise KeyError(key)
        self._options[key] = _coerce(key, value, DEFAULT_OPTIONS[key])

    @property
    def assets(self):
        return self._assets

    def set_asset(self, key: str, value: str):
        if key not in self._assets:
            raise KeyError(key)
        self._assets[key] = str(value)

    @property
    def locations(self):
        return self._locations
