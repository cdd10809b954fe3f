"""Widget components for the globe viewer application."""

from .globe_display import GlobeDisplay
from .status_bar import StatusBar

__all__ = [
    'GlobeDisplay',
    'StatusBar',
]
