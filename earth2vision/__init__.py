"""Interactive terminal globe with Globe/Map views, tile overlay and geo labels."""

__version__ = "0.1.0"
