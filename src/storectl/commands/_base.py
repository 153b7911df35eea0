"""Click classes that carry usage examples.

``StoreCommand`` and ``StoreGroup`` take an ``examples=`` block and expose
it through an eager ``--examples`` flag, so ``--help`` stays short.
"""

from __future__ import annotations

import textwrap
from typing import Any

import click


class ExamplesMixin:
    """Adds ``--examples`` to any Click command that was given examples."""

    examples: str | None

    def _init_examples(self, examples: str | None) -> None:
        self.examples = textwrap.dedent(examples).strip("\n") if examples else None

    def _show_examples(self, ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value or ctx.resilient_parsing:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(textwrap.indent(self.examples or "", "  "))
        ctx.exit(0)

    def get_params(self, ctx: click.Context) -> list[click.Parameter]:
        params: list[click.Parameter] = super().get_params(ctx)  # type: ignore[misc]
        if self.examples:
            params.append(
                click.Option(
                    ["--examples"],
                    is_flag=True,
                    expose_value=False,
                    is_eager=True,
                    callback=self._show_examples,
                    help="Show usage examples and exit.",
                )
            )
        return params


class StoreCommand(ExamplesMixin, click.Command):
    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._init_examples(examples)


class StoreGroup(ExamplesMixin, click.Group):
    """Group whose ``@group.command()`` subcommands are StoreCommands."""

    command_class = StoreCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._init_examples(examples)
