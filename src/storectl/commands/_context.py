"""AppContext — the object every storectl command receives.

The root group builds it from :class:`StoreSettings`; subcommands get it via
``@click.pass_obj``. It owns the per-invocation Registry (created on first
use, so ``--help`` never loads plugins), hands out configured services, and
turns a ServiceResult into output and an exit code.
"""

from __future__ import annotations

from functools import cached_property
from typing import TYPE_CHECKING

import click

from storectl.config.logging import configure_logging
from storectl.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from storectl.config.settings import StoreSettings
    from storectl.infrastructure.registry import Registry
    from storectl.services.result import ServiceResult
    from storectl.services.script import ScriptService


def echo_line(line_number: int, text: str) -> None:
    """Show a script line on stderr just before it runs."""
    click.echo(f"{line_number:>4} > {text}", err=True)


class AppContext:
    def __init__(self, settings: StoreSettings) -> None:
        self.settings = settings
        configure_logging(verbose=settings.verbose, log_json=settings.log_json)
        if settings.verbose:
            from storectl.services.telemetry import enable_telemetry

            enable_telemetry()

    @cached_property
    def registry(self) -> Registry:
        """A fresh in-memory Registry with plugins loaded."""
        from storectl.infrastructure.registry import Registry

        registry = Registry(self.settings)
        registry.init_event_bus()
        return registry

    @cached_property
    def output_settings(self) -> OutputSettings:
        return OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )

    def script_service(self, *, echo: bool | None = None) -> ScriptService:
        """A ScriptService on this invocation's Registry.

        *echo* overrides ``[script] echo``; echoed lines go to stderr.
        """
        from storectl.services.script import ScriptService

        config = self.settings.script
        if echo is not None:
            config = config.model_copy(update={"echo": echo})
        return ScriptService(
            self.registry,
            config=config,
            on_line=echo_line if config.echo else None,
        )

    def emit(self, result: ServiceResult) -> None:
        """Print *result* and set the exit status.

        Success goes to stdout, followed by one ``WARNING:`` line per
        warning on stderr (JSON output already embeds them; quiet drops
        them). Failure goes to stderr and exits with status 1.
        """
        settings = self.output_settings
        output = format_result(result, settings=settings)
        if not result.ok:
            click.echo(output, err=True)
            raise SystemExit(1)

        click.echo(output)
        if settings.json_output or settings.quiet:
            return
        for warning in result.warnings:
            click.echo(f"WARNING: {warning}", err=True)
