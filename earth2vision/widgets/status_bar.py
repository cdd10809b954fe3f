"""Status bar: key hints on line 1, live view state on line 2."""

from textual.css.query import NoMatches
from textual.widgets import Static, Label

from ..view_state import ViewMode

KEY_HINTS = [
    ("space", "Rotate", "cyan"),
    ("m", "Globe/Map", "green"),
    ("+/-", "Zoom", "yellow"),
    ("t", "Tiles", "magenta"),
    ("[ ]", "Speed", "dark_orange"),
    ("d", "Density", "steel_blue"),
    ("r", "Reset", "white"),
]


def format_status(viewer) -> str:
    state = viewer.state
    if state.mode is ViewMode.MAP:
        mode = "[green]MAP[/green]"
        rotate = "[dim]n/a[/dim]"
    else:
        mode = "[cyan]GLOBE[/cyan]"
        rotate = "[green]on[/green]" if state.auto_rotate else "[red]paused[/red]"
        if state.dragging:
            rotate += " [dim](drag)[/dim]"
    return (
        f"{mode}  Rotate: {rotate}  Speed: [cyan]{state.rotation_speed:.1f}x[/cyan]"
        f"  Zoom: [cyan]{state.zoom_level:.2f}[/cyan]"
        f"  Tiles: [cyan]{viewer.density}[/cyan] ({len(viewer.tiles.tiles)})"
    )


class StatusBar(Static):

    def compose(self):
        yield Label("", id="status-hints-row")
        yield Label("", id="status-state-row")

    def on_mount(self):
        parts = []
        for key, label, color in KEY_HINTS:
            parts.append(f"[{color}]{label}[/{color}] [dim]{key}[/dim]")
        parts.append("[dim]Quit[/dim] [dim]q[/dim]")
        self.query_one("#status-hints-row", Label).update("  ".join(parts))

    def set_status(self, text: str):
        try:
            row = self.query_one("#status-state-row", Label)
        except NoMatches:
            return
        row.update(f" {text}")
