"""Rich console used by the renderers.

Renderers draw into an in-memory console and return the text, so the CLI
decides where it goes (stdout or stderr). Rich drops color codes on its
own when not attached to a terminal.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

DEFAULT_WIDTH = 120

STORE_THEME = Theme(
    {
        # result status
        "store.ok": "bold green",
        "store.error": "bold red",
        "store.warning": "bold yellow",
        "store.op": "bold cyan",
        # entity fields
        "store.key": "dim",
        "store.id": "bold blue",
        # script reports
        "store.line": "magenta",
        "store.code": "yellow",
        "store.command": "dim",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """An off-screen console with the store theme, ``DEFAULT_WIDTH`` wide."""
    return Console(
        file=StringIO(),
        theme=STORE_THEME,
        no_color=no_color,
        highlight=False,
        width=width or DEFAULT_WIDTH,
    )


def get_output(console: Console) -> str:
    """Everything rendered into a console from :func:`create_console`."""
    buffer = console.file
    if not isinstance(buffer, StringIO):
        msg = "console was not created by create_console()"
        raise TypeError(msg)
    return buffer.getvalue()
