"""Rich Console factory and theme for fairlend output.

Consoles render into a StringIO buffer so renderers keep the
``render_result() -> str`` contract. Rich drops color codes on its own
when the output is not a terminal (tests, pipes).
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

FAIRLEND_THEME = Theme(
    {
        "fl.ok": "bold green",
        "fl.error": "bold red",
        "fl.warning": "bold yellow",
        "fl.op": "bold cyan",
        "fl.key": "dim",
        "fl.id": "bold blue",
        "fl.url": "underline",
        "fl.amount": "bold",
        "fl.status.healthy": "green",
        "fl.status.syncing": "cyan",
        "fl.status.partial": "yellow",
        "fl.status.failed": "red",
    }
)

_STATUS_STYLES: dict[str, str] = {
    "healthy": "fl.status.healthy",
    "completed": "fl.status.healthy",
    "syncing": "fl.status.syncing",
    "running": "fl.status.syncing",
    "partial": "fl.status.partial",
    "failed": "fl.status.failed",
}


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer."""
    return Console(
        file=StringIO(),
        theme=FAIRLEND_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_status(status: str) -> str:
    """Rich style for a sync or health status; empty when unknown."""
    return _STATUS_STYLES.get(status, "")
