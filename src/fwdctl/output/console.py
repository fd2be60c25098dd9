"""Rich Console factory and theme for fwdctl output.

Creates Console instances that render to a StringIO buffer, preserving
the ``format_result() -> str`` contract.  In non-TTY environments
(tests, pipes) Rich automatically disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

FWD_THEME = Theme(
    {
        "fwd.ok": "bold green",
        "fwd.error": "bold red",
        "fwd.warning": "bold yellow",
        "fwd.op": "bold cyan",
        "fwd.key": "dim",
        "fwd.id": "bold blue",
        "fwd.name": "bold",
        "fwd.count": "magenta",
        "fwd.status.active": "green",
        "fwd.status.inactive": "dim",
        "fwd.status.suspended": "yellow",
        "fwd.status.archived": "blue",
    }
)

_STATUS_STYLES: dict[str, str] = {
    "active": "fwd.status.active",
    "inactive": "fwd.status.inactive",
    "suspended": "fwd.status.suspended",
    "archived": "fwd.status.archived",
}


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width (useful for consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=FWD_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_status(status: str) -> str:
    """Return the Rich style name for a client status."""
    return _STATUS_STYLES.get(status, "")
