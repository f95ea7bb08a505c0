"""Subcommand modules for fairlend.

Provides register_commands() which uses deferred imports to keep
``fairlend --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register the command groups on the root CLI group."""
    from fairlend.commands.ledger import ledger
    from fairlend.commands.route import route
    from fairlend.commands.sync import sync

    cli.add_command(route)
    cli.add_command(ledger)
    cli.add_command(sync)
