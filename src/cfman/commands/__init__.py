"""Subcommand modules for cfman.

register_commands() uses deferred imports to keep ``cfman --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register command groups and standalone commands on the root group."""
    from cfman.commands.plugins import plugins
    from cfman.commands.tasks import tasks

    cli.add_command(plugins)
    cli.add_command(tasks)
