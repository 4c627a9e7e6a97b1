"""AppContext — shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``. Opens workspaces and centralizes result emission
(stdout/stderr routing + exit codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from depcycle.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from pathlib import Path

    from depcycle.config.settings import DepcycleSettings
    from depcycle.infrastructure.workspace import Workspace
    from depcycle.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy."""

    def __init__(self, settings: DepcycleSettings) -> None:
        self.settings = settings

        from depcycle.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

        # Span trees are only collected (and shown) in verbose mode.
        if settings.verbose:
            from depcycle.services.telemetry import enable_telemetry

            enable_telemetry()

    def open_workspace(self, op: str, path: Path) -> Workspace:
        """Load the manifest at *path*; emits an INVALID_MANIFEST error and exits on failure."""
        from depcycle.domain.errors import ManifestError
        from depcycle.infrastructure.workspace import Workspace
        from depcycle.services.result import ServiceResult

        try:
            return Workspace.open(self.settings, path)
        except ManifestError as exc:
            self.emit(ServiceResult.failure(op, "INVALID_MANIFEST", str(exc), path=str(path)))
            raise SystemExit(1) from exc

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
          Warnings are emitted to stderr so they don't pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            # In JSON mode, warnings are already in the serialized payload.
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
