"""Subcommand modules for depcycle.

Provides register_commands() which uses deferred imports to keep
``depcycle --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register the standalone commands on the root CLI group."""
    from depcycle.commands.detect import detect
    from depcycle.commands.fix import fix
    from depcycle.commands.plan import plan

    cli.add_command(detect)
    cli.add_command(plan)
    cli.add_command(fix)
