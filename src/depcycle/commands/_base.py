"""Click classes that add an ``--examples`` flag to depcycle commands.

``depcycle fix --examples`` prints sample invocations and exits without
touching the MANIFEST argument, so ``--help`` can stay short.
"""

from __future__ import annotations

from typing import Any

import click


class _ExamplesMixin:
    """Registers an eager ``--examples`` option when *examples* text is given."""

    params: list[click.Parameter]

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            self.params.append(
                click.Option(
                    ["--examples"],
                    is_flag=True,
                    expose_value=False,
                    is_eager=True,
                    callback=self._print_examples,
                    help="Show usage examples and exit.",
                )
            )

    def _print_examples(self, ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        # Eager, so this runs before MANIFEST is checked.
        if value:
            click.echo(f"Examples for '{ctx.command_path}':\n\n{self.examples}")
            ctx.exit(0)


class DepCommand(_ExamplesMixin, click.Command):
    """A depcycle subcommand (detect, plan, fix)."""


class DepGroup(_ExamplesMixin, click.Group):
    """The root ``depcycle`` group."""
