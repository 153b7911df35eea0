"""Command: replay a command script against a fresh in-memory store."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from storectl.commands._base import StoreCommand

if TYPE_CHECKING:
    from storectl.commands._context import AppContext


@click.command(
    cls=StoreCommand,
    examples="""\
  storectl run store.script
  storectl run store.script --strict
  storectl --json run store.script
  storectl -v run store.script --echo""",
)
@click.argument("script", type=click.Path(dir_okay=False, path_type=str))
@click.option("--strict", is_flag=True, help="Exit with code 1 if any line failed.")
@click.option("--echo/--no-echo", default=None, help="Print each command before it runs.")
@click.pass_obj
def run(app: AppContext, script: str, strict: bool, echo: bool | None) -> None:
    """Run every command in SCRIPT, reporting lines that failed."""
    from storectl.services.result import ServiceResult

    result = app.script_service(echo=echo).run_file(script)

    failed = result.data.get("failed", 0)
    if strict and result.ok and failed:
        result = ServiceResult.failure(
            result.op,
            "SCRIPT_FAILED",
            f"{failed} command(s) failed",
            data=result.data,
        ).model_copy(update={"warnings": result.warnings, "meta": result.meta})
    app.emit(result)
