"""Textual Message subclasses for widget-to-app communication."""

from textual.message import Message


class ViewChanged(Message):
    """Posted when the globe's view state changed from inside a widget (e.g. a drag)."""

    def __init__(self, event: str) -> None:
        super().__init__()
        self.event = event
