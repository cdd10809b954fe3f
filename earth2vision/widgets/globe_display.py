"""Globe display widget: animation loop, mouse orbit and braille output."""

import time

from rich.text import Text
from textual import events
from textual.widgets import Static

from ..renderer import render_viewer
from .messages import ViewChanged

# Radians of orbit per terminal cell dragged.
DRAG_RADIANS_X = 0.03
DRAG_RADIANS_Y = 0.06


class GlobeDisplay(Static):
    """Display widget for the globe. Owns no view state of its own."""

    def __init__(self, viewer, frame_interval=1.0 / 30):
        super().__init__()
        self.viewer = viewer
        self._frame_interval = frame_interval
        self._last_frame_time = 0.0
        self._last_size = (0, 0)
        self._drag_last = None

    def on_mount(self):
        self._sync_viewport()
        self.render_globe()

    def _sync_viewport(self):
        size = self.size
        if size.width == 0 or size.height == 0:
            return False
        current_size = (size.width, size.height)
        if current_size != self._last_size:
            self._last_size = current_size
            # Braille cells are 2x4 dots.
            self.viewer.on_viewport_resize(size.width * 2, size.height * 4)
        return True

    def on_resize(self, event: events.Resize) -> None:
        if self._sync_viewport():
            self.render_globe()

    def animate_frame(self):
        now = time.monotonic()
        if now - self._last_frame_time < self._frame_interval:
            return
        self._last_frame_time = now
        if not self._sync_viewport():
            return
        self.viewer.frame()
        self.render_globe()

    def render_globe(self):
        """Render the viewer's current frame to the display."""
        size = self.size
        if size.width == 0 or size.height == 0:
            return
        braille_lines = render_viewer(self.viewer)
        combined = Text()
        for i, line in enumerate(braille_lines):
            combined.append_text(line)
            if i < len(braille_lines) - 1:
                combined.append("\n")
        self.update(combined)

    # --- Mouse orbit ---

    def on_mouse_down(self, event: events.MouseDown) -> None:
        if not self.viewer.view.orbit_enabled:
            return
        self.capture_mouse()
        self._drag_last = (event.x, event.y)
        self.viewer.on_drag_start()
        self.post_message(ViewChanged("drag"))

    def on_mouse_move(self, event: events.MouseMove) -> None:
        if self._drag_last is None:
            return
        dx = event.x - self._drag_last[0]
        dy = event.y - self._drag_last[1]
        self._drag_last = (event.x, event.y)
        if dx or dy:
            self.viewer.orbit(-dx * DRAG_RADIANS_X, -dy * DRAG_RADIANS_Y)
            self.render_globe()

    def on_mouse_up(self, event: events.MouseUp) -> None:
        if self._drag_last is None:
            return
        self._drag_last = None
        self.release_mouse()
        self.viewer.on_drag_end()
        self.post_message(ViewChanged("drag"))
