"""Contract between the controller and whatever presents its state."""

from typing import Protocol


class StatusSink(Protocol):
    """Receives state changes and one-line notifications."""

    def set_connected(self, connected: bool) -> None:
        """Called with every probe result, changed or not."""
        ...

    def notify(self, message: str) -> None:
        """Show a one-line message, typically an error from a user action."""
        ...
