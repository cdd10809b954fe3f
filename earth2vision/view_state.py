"""View state machine: Globe/Map mode, auto-rotation and drag suppression."""

import enum
import logging
import math
from dataclasses import dataclass

log = logging.getLogger("e2v.view_state")

ZOOM_MIN = 1.0
ZOOM_MAX = 5.0
DEFAULT_ZOOM = 2.5
BASE_ROTATION_INCREMENT = 0.0005  # radians per frame at speed 1.0


class ViewMode(enum.Enum):
    GLOBE = "globe"
    MAP = "map"


@dataclass
class ViewState:
    mode: ViewMode = ViewMode.GLOBE
    auto_rotate: bool = True
    rotation_speed: float = 1.0
    dragging: bool = False
    zoom_level: float = DEFAULT_ZOOM


def clamp_zoom(value: float) -> float:
    return min(max(value, ZOOM_MIN), ZOOM_MAX)


class ViewStateController:
    """Owns the ViewState. Every mutation goes through a transition method.

    Entering Map mode suspends auto-rotation rather than discarding it: the
    Globe-mode flag is remembered and restored on the way back.
    """

    def __init__(self, globe, auto_rotate=True, rotation_speed=1.0,
                 base_increment=BASE_ROTATION_INCREMENT, map_mode_enabled=True):
        self.globe = globe
        self.base_increment = base_increment
        self.map_mode_enabled = map_mode_enabled
        self._state = ViewState(auto_rotate=auto_rotate)
        self._suspended_auto_rotate = auto_rotate
        self._on_transition_callbacks: list = []
        self.set_rotation_speed(rotation_speed)

    def on_transition(self, callback):
        """Register callback(event, state) fired after each state change."""
        self._on_transition_callbacks.append(callback)

    def _emit(self, event):
        for cb in self._on_transition_callbacks:
            try:
                cb(event, self._state)
            except Exception:
                log.exception("Transition callback failed for %r", event)

    @property
    def state(self) -> ViewState:
        return self._state

    @property
    def mode(self) -> ViewMode:
        return self._state.mode

    @property
    def is_map(self) -> bool:
        return self._state.mode is ViewMode.MAP

    @property
    def orbit_enabled(self) -> bool:
        return self._state.mode is ViewMode.GLOBE

    @property
    def auto_rotate_available(self) -> bool:
        return self._state.mode is ViewMode.GLOBE

    def toggle_mode(self) -> bool:
        if not self.map_mode_enabled:
            log.debug("Map mode disabled; toggle ignored")
            return False
        s = self._state
        if s.mode is ViewMode.GLOBE:
            self._suspended_auto_rotate = s.auto_rotate
            s.mode = ViewMode.MAP
            s.auto_rotate = False
            s.dragging = False
        else:
            s.mode = ViewMode.GLOBE
            s.auto_rotate = self._suspended_auto_rotate
        log.info("Mode -> %s (auto_rotate=%s)", s.mode.value, s.auto_rotate)
        self._emit("mode")
        return True

    def toggle_auto_rotate(self) -> bool:
        if not self.auto_rotate_available:
            log.debug("Auto-rotate toggle ignored in map mode")
            return False
        self._state.auto_rotate = not self._state.auto_rotate
        log.info("Auto-rotate %s", "on" if self._state.auto_rotate else "off")
        self._emit("auto_rotate")
        return True

    def set_rotation_speed(self, value: float):
        value = float(value)
        if not math.isfinite(value) or value < 0:
            raise ValueError(f"rotation speed must be a finite value >= 0, got {value}")
        self._state.rotation_speed = value
        self._emit("rotation_speed")

    def on_drag_start(self):
        self._state.dragging = True
        self._emit("drag")

    def on_drag_end(self):
        self._state.dragging = False
        self._emit("drag")

    def set_zoom(self, value: float) -> float:
        self._state.zoom_level = clamp_zoom(value)
        self._emit("zoom")
        return self._state.zoom_level

    def tick(self) -> float:
        """Advance auto-rotation by one frame. Returns the angle applied."""
        s = self._state
        if s.mode is not ViewMode.GLOBE or not s.auto_rotate or s.dragging:
            return 0.0
        step = self.base_increment * s.rotation_speed
        self.globe.azimuth = self.globe.azimuth + step
        return step
