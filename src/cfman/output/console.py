"""In-memory Rich console used by every renderer.

Renderers return strings, so the console prints into a buffer and the
CLI decides which stream the text goes to. Rich drops color codes on
its own when the buffer is not a terminal.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

CFMAN_THEME = Theme(
    {
        "cf.ok": "bold green",
        "cf.error": "bold red",
        "cf.warning": "bold yellow",
        "cf.op": "bold cyan",
        "cf.key": "dim",
        "cf.type": "bold blue",
        "cf.task": "magenta",
        "cf.title": "bold",
    }
)

DEFAULT_WIDTH = 120


class BufferedConsole(Console):
    """A themed :class:`Console` writing to a private buffer."""

    def __init__(self, *, width: int = DEFAULT_WIDTH, no_color: bool = False) -> None:
        self._text_buffer = StringIO()
        super().__init__(
            file=self._text_buffer,
            theme=CFMAN_THEME,
            no_color=no_color,
            highlight=False,
            width=width,
        )

    def getvalue(self) -> str:
        """Everything printed so far, without trailing newlines."""
        return self._text_buffer.getvalue().rstrip("\n")
