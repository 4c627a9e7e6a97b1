"""Rich Console factory and theme for depcycle output.

Creates Console instances that render to a StringIO buffer, preserving
the ``format_result() -> str`` contract. In non-TTY environments
(tests, pipes) Rich automatically disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

DEPCYCLE_THEME = Theme(
    {
        "dc.ok": "bold green",
        "dc.error": "bold red",
        "dc.warning": "bold yellow",
        "dc.op": "bold cyan",
        "dc.key": "dim",
        "dc.node": "bold blue",
        "dc.cycle": "magenta",
        "dc.kind.field": "green",
        "dc.kind.setter": "cyan",
        "dc.kind.constructor": "yellow",
        "dc.kind.factory_method": "red",
        "dc.outcome.applied": "green",
        "dc.outcome.skipped": "dim",
        "dc.outcome.failed": "bold red",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width (useful for consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=DEPCYCLE_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_kind(kind: str) -> str:
    """Rich style name for an injection kind."""
    return f"dc.kind.{kind}" if kind else ""


def style_for_outcome(outcome: str) -> str:
    """Rich style name for a strategy outcome."""
    return f"dc.outcome.{outcome}" if outcome else ""
