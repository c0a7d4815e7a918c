"""
Host editor boundary for the Starling editor client.

StarlingClient only talks to the editor through this protocol; plugin.py
implements it on top of pynvim.
"""

from typing import Protocol

from .models import Severity


class Editor(Protocol):
    def current_buffer(self) -> int | None:
        """Handle of the focused buffer, None before any buffer is entered."""
        ...

    def notify(self, message: str, severity: Severity) -> None:
        """Show a notification at the given severity."""
        ...

    def echo(self, message: str) -> None:
        """Show a plain, non-error message."""
        ...

    def open_file(self, path: str) -> None:
        ...

    def check_time(self) -> None:
        """Reload buffers whose files changed on disk."""
        ...

    def trigger_completion(self, source: str) -> None:
        """Open the completion menu restricted to one source."""
        ...
