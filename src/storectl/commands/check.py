"""Command: lint a command script without running it."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from storectl.commands._base import StoreCommand

if TYPE_CHECKING:
    from storectl.commands._context import AppContext


@click.command(
    cls=StoreCommand,
    examples="""\
  storectl check store.script
  storectl --json check store.script""",
)
@click.argument("script", type=click.Path(dir_okay=False, path_type=str))
@click.pass_obj
def check(app: AppContext, script: str) -> None:
    """Check that every line of SCRIPT is a well-formed command."""
    app.emit(app.script_service().check_file(script))
