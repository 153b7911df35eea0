"""Subcommand modules for storectl.

Provides register_commands() which uses deferred imports to keep
``storectl --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all standalone commands on the root CLI group."""
    from storectl.commands.check import check
    from storectl.commands.grammar import grammar
    from storectl.commands.run import run

    cli.add_command(run)
    cli.add_command(check)
    cli.add_command(grammar)
