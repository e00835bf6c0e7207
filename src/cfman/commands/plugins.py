"""Command group: inspect registered resource plugins."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from cfman.commands._base import CfGroup

if TYPE_CHECKING:
    from cfman.commands._context import AppContext


@click.group(
    cls=CfGroup,
    examples="""\
  cfman plugins list
  cfman plugins show workers
  cfman --json plugins show kv""",
)
def plugins() -> None:
    """Inspect registered resource plugins."""


@plugins.command("list")
@click.pass_obj
def list_cmd(app: AppContext) -> None:
    """List registered plugins and their task types."""
    from cfman.services.catalog import CatalogService

    app.emit(CatalogService(app.runtime.registry).list_plugins())


@plugins.command(
    "show",
    examples="""\
  cfman plugins show workers
  cfman --json plugins show kv""",
)
@click.argument("resource_type")
@click.pass_obj
def show(app: AppContext, resource_type: str) -> None:
    """Show a plugin's task types, columns, and forms."""
    from cfman.services.catalog import CatalogService

    app.emit(CatalogService(app.runtime.registry).describe_plugin(resource_type))
