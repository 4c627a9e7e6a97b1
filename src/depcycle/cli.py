"""Root CLI group for depcycle with global flags and command registration."""

from __future__ import annotations

import click

from depcycle import __version__
from depcycle.commands import register_commands
from depcycle.commands._base import DepGroup
from depcycle.commands._context import AppContext
from depcycle.config.settings import DepcycleSettings


@click.group(
    cls=DepGroup,
    invoke_without_command=True,
    examples="""\
  depcycle detect wiring.yaml
  depcycle -v plan wiring.yaml
  depcycle fix wiring.yaml --dry-run
  depcycle --json -c ci/depcycle.toml fix wiring.yaml""",
)
@click.version_option(version=__version__, prog_name="depcycle")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug logs and timings.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
) -> None:
    """depcycle — find and break circular component dependencies."""
    ctx.ensure_object(dict)
    settings = DepcycleSettings.from_cli(
        config_path=config_path,
        json_output=json_output,
        quiet=quiet,
        verbose=verbose,
        log_json=log_json,
    )
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
