#!/usr/bin/env python3
"""
Interactive terminal globe with Globe and flat Map views, rendered with
braille characters.

Interactive controls:
  space: Pause/resume auto-rotation (globe view only)
  m: Toggle globe / flat map
  +/=, -: Zoom in / out
  t: Zoom to inspect the tile grid
  [ / ]: Rotation speed down / up
  d: Cycle tile grid density
  Arrow keys or mouse drag: Orbit (globe view only)
  r: Reset view
  q: Quit
"""

import argparse
import logging
import sys
from pathlib import Path

from .assets import load_outlines, load_places
from .config_manager import ConfigManager
from .tiles import DENSITY_PRESETS

LOG_FILE = Path("earth2vision.log")


def _setup_logging(log_file, debug=False):
    """Log to a file: the terminal belongs to the TUI while it runs."""
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(asctime)s %(name)s %(levelname)s %(message)s",
                                           datefmt="%H:%M:%S"))
    logging.root.addHandler(handler)
    logging.root.setLevel(logging.DEBUG if debug else logging.INFO)


def _positive_int(text):
    value = int(text)
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return value


def build_parser():
    parser = argparse.ArgumentParser(description='Interactive 3D globe / flat map viewer')
    parser.add_argument('--config', type=Path, default=None,
                        help='TOML config file (default: ./earth2vision.toml)')
    parser.add_argument('--coastlines', default=None,
                        help='Outline shapefile (default from config)')
    parser.add_argument('--places', default=None,
                        help='Populated places shapefile for labels (default from config)')
    parser.add_argument('--density', choices=sorted(DENSITY_PRESETS), default=None,
                        help='Tile grid density')
    parser.add_argument('--no-map-mode', action='store_true',
                        help='Disable the flat map view')
    parser.add_argument('--framerate', type=_positive_int, default=None,
                        help='Animation frames per second')
    parser.add_argument('--log-file', type=Path, default=LOG_FILE)
    parser.add_argument('--debug', action='store_true', help='Verbose logging')
    return parser


def apply_overrides(config, args):
    if args.density:
        config.set_option("density", args.density)
    if args.no_map_mode:
        config.set_option("map_mode", False)
    if args.framerate:
        config.set_option("framerate", args.framerate)
    if args.coastlines:
        config.set_asset("coastlines", args.coastlines)
    if args.places:
        config.set_asset("places", args.places)
    return config


def main(argv=None):
    args = build_parser().parse_args(argv)
    _setup_logging(args.log_file, args.debug)
    log = logging.getLogger("e2v.main")

    config = apply_overrides(ConfigManager(args.config), args)

    def status(msg):
        sys.stdout.write(f'\r{msg}')
        sys.stdout.flush()

    status('Loading outlines...')
    outlines = load_outlines(config.assets["coastlines"])

    status('Loading places...  ')
    places = load_places(config.assets["places"], config.locations)

    status('Starting UI...     \n')

    from .app import GlobeApp
    from .viewer import GlobeViewer

    viewer = GlobeViewer.from_config(config, outlines=outlines, places=places)
    log.info("Starting with %d outlines, %d places, density=%s",
             len(outlines), len(places), viewer.density)
    GlobeApp(viewer, framerate=config.get_option("framerate")).run()


if __name__ == '__main__':
    main()
