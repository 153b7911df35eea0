"""Root CLI group for storectl with global flags and command registration."""

from __future__ import annotations

import click

from storectl import __version__
from storectl.commands import register_commands
from storectl.commands._base import StoreGroup
from storectl.commands._context import AppContext
from storectl.config.settings import StoreSettings


@click.group(
    cls=StoreGroup,
    invoke_without_command=True,
    examples="""\
  storectl run store.script
  storectl check store.script
  storectl grammar""",
)
@click.version_option(version=__version__, prog_name="storectl")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug info.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Config file to use instead of the discovered storectl.toml.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
) -> None:
    """storectl: build a smart store in memory by running command scripts.

    Each invocation starts from an empty store; a script defines stores,
    aisles, shelves, products, customers and devices, then shops.
    """
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        return
    ctx.obj = AppContext(
        StoreSettings.from_cli(
            config_path=config_path,
            json_output=json_output,
            quiet=quiet,
            verbose=verbose,
            log_json=log_json,
        )
    )


register_commands(cli)
