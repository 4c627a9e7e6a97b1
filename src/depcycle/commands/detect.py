"""Standalone command: list dependency cycles."""

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
  depcycle detect wiring.yaml
  depcycle --json detect wiring.yaml
  depcycle -q detect wiring.yaml""",
)
@click.argument("manifest", type=click.Path(dir_okay=False, path_type=Path))
@click.pass_obj
def detect(app: AppContext, manifest: Path) -> None:
    """Find every elementary dependency cycle in MANIFEST."""
    workspace = app.open_workspace("detect", manifest)
    app.emit(ResolveService(workspace).detect())
