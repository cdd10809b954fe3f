"""Main GlobeApp Textual application."""

import logging
import math

from textual.app import App, ComposeResult
from textual.containers import Container

from .widgets import GlobeDisplay, StatusBar
from .widgets.messages import ViewChanged
from .widgets.status_bar import format_status

log = logging.getLogger("e2v.app")

ZOOM_IN_FACTOR = 0.8
ZOOM_OUT_FACTOR = 1.2
SPEED_STEP = 0.5
ORBIT_STEP = math.radians(10.0)


class GlobeApp(App):
    """Textual TUI application for the interactive globe.

    Key handlers are thin adapters onto GlobeViewer operations; the app keeps
    no view state of its own.
    """

    CSS = """
    Screen {
        background: $surface;
    }

    StatusBar {
        dock: top;
        height: 2;
        width: 100%;
        color: $text;
    }

    #globe-container {
        width: 100%;
        height: 100%;
        border: solid green;
    }

    GlobeDisplay {
        width: 100%;
        height: 100%;
    }
    """

    TITLE = "Earth2Vision"
    BINDINGS = [
        ("space", "toggle_rotation", "Rotate"),
        ("m", "toggle_mode", "Globe/Map"),
        ("plus,equals_sign", "zoom_in", "Zoom+"),
        ("minus", "zoom_out", "Zoom-"),
        ("t", "zoom_tiles", "Tiles"),
        ("r", "reset", "Reset"),
        ("left_square_bracket", "speed_down", "Slower"),
        ("right_square_bracket", "speed_up", "Faster"),
        ("d", "cycle_density", "Density"),
        ("up", "orbit_up", "Up"),
        ("down", "orbit_down", "Down"),
        ("left", "orbit_left", "Left"),
        ("right", "orbit_right", "Right"),
        ("q", "quit", "Quit"),
    ]

    def __init__(self, viewer, framerate=30):
        super().__init__()
        self.viewer = viewer
        self.framerate = max(1, int(framerate))

    def compose(self) -> ComposeResult:
        self.status_bar = StatusBar()
        self.globe_display = GlobeDisplay(self.viewer, frame_interval=1.0 / self.framerate)
        yield self.status_bar
        with Container(id="globe-container"):
            yield self.globe_display

    def on_mount(self):
        self.set_interval(1.0 / self.framerate, self.animate)
        self._refresh_status()

    def animate(self):
        self.globe_display.animate_frame()

    def _refresh_status(self):
        self.status_bar.set_status(format_status(self.viewer))

    def _changed(self):
        self._refresh_status()
        self.globe_display.render_globe()

    # ── Message handlers ──

    def on_view_changed(self, message: ViewChanged) -> None:
        self._refresh_status()

    # ── Action handlers (BINDINGS) ──

    def action_toggle_rotation(self):
        if not self.viewer.toggle_auto_rotate():
            self.notify("Rotation is unavailable in map mode", severity="warning")
        self._changed()

    def action_toggle_mode(self):
        if not self.viewer.toggle_mode():
            self.notify("Map mode is disabled", severity="warning")
        self.viewer.frame()
        self._changed()

    def action_zoom_in(self):
        self.viewer.adjust_zoom(ZOOM_IN_FACTOR)
        self._changed()

    def action_zoom_out(self):
        self.viewer.adjust_zoom(ZOOM_OUT_FACTOR)
        self._changed()

    def action_zoom_tiles(self):
        self.viewer.zoom_to_tiles()
        self._changed()

    def action_reset(self):
        self.viewer.reset_view()
        self._changed()

    def action_speed_down(self):
        self.viewer.set_rotation_speed(max(0.0, self.viewer.state.rotation_speed - SPEED_STEP))
        self._refresh_status()

    def action_speed_up(self):
        self.viewer.set_rotation_speed(self.viewer.state.rotation_speed + SPEED_STEP)
        self._refresh_status()

    def action_cycle_density(self):
        density = self.viewer.cycle_density()
        log.info("Tile density -> %s", density)
        self._changed()

    def _orbit(self, d_azimuth, d_polar):
        if self.viewer.orbit(d_azimuth, d_polar):
            self.globe_display.render_globe()

    def action_orbit_up(self):
        self._orbit(0.0, -ORBIT_STEP)

    def action_orbit_down(self):
        self._orbit(0.0, ORBIT_STEP)

    def action_orbit_left(self):
        self._orbit(-ORBIT_STEP, 0.0)

    def action_orbit_right(self):
        self._orbit(ORBIT_STEP, 0.0)
