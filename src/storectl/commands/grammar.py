"""Command: list the keywords a command script may use."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from storectl.commands._base import StoreCommand

if TYPE_CHECKING:
    from storectl.commands._context import AppContext


@click.command(
    cls=StoreCommand,
    examples="""\
  storectl grammar
  storectl -v grammar
  storectl --json grammar""",
)
@click.pass_obj
def grammar(app: AppContext) -> None:
    """Show every script keyword with its arguments."""
    app.emit(app.script_service().describe_grammar())
