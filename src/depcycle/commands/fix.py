"""Standalone command: break dependency cycles and save the manifest."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from depcycle.commands._base import DepCommand
from depcycle.services.resolve import ResolveService

if TYPE_CHECKING:
    from depcycle.commands._context import AppContext

_STRATEGIES = ["auto", "defer", "convert", "extract_interface", "extract_mediator"]


@click.command(
    cls=DepCommand,
    examples="""\
  depcycle fix wiring.yaml --dry-run
  depcycle fix wiring.yaml --passes 3
  depcycle fix wiring.yaml --strategy extract_mediator --output fixed.yaml
  depcycle --json fix wiring.yaml --no-verify""",
)
@click.argument("manifest", type=click.Path(dir_okay=False, path_type=Path))
@click.option(
    "--strategy",
    type=click.Choice(_STRATEGIES),
    default=None,
    help="Force a single strategy (default: config, then auto).",
)
@click.option("--dry-run", is_flag=True, default=None, help="Report what would change; write nothing.")
@click.option("--no-verify", "no_verify", is_flag=True, help="Skip the final re-detection.")
@click.option("--passes", type=click.IntRange(1, 10), default=None, help="Maximum detect/fix passes.")
@click.option(
    "--output",
    "output_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the fixed manifest here instead of in place.",
)
@click.pass_obj
def fix(
    app: AppContext,
    manifest: Path,
    strategy: str | None,
    dry_run: bool | None,
    no_verify: bool,
    passes: int | None,
    output_path: Path | None,
) -> None:
    """Break the dependency cycles in MANIFEST."""
    workspace = app.open_workspace("resolve", manifest)
    result = ResolveService(workspace).resolve(
        strategy=strategy,
        dry_run=dry_run or None,
        verify=False if no_verify else None,
        max_passes=passes,
    )
    if result.ok and not result.data.get("dry_run") and result.data.get("applied", 0) > 0:
        saved = workspace.save(output_path)
        result = result.model_copy(update={"data": {**result.data, "saved_to": str(saved)}})
    app.emit(result)
