"""Standalone command: choose which edges to break."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from depcycle.commands._base import DepCommand
from depcycle.services.resolve import ResolveService

if TYPE_CHECKING:
    from depcycle.commands._context import AppContext


@click.command(
    cls=DepCommand,
    examples="""\
  depcycle plan wiring.yaml
  depcycle -v plan wiring.yaml
  depcycle --json plan wiring.yaml""",
)
@click.argument("manifest", type=click.Path(dir_okay=False, path_type=Path))
@click.pass_obj
def plan(app: AppContext, manifest: Path) -> None:
    """Select the dependency edges to break, with a recommendation for each."""
    workspace = app.open_workspace("plan", manifest)
    app.emit(ResolveService(workspace).plan())
